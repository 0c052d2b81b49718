from flask import Blueprint, jsonify
from spinnergy import get_services
from spinnergy.api import json_body
from spinnergy.services.energy import simulate_energy

main = Blueprint('main', __name__)


@main.route('/')
def index():
    return jsonify({'status': 'Spinnergy server running', 'degraded': get_services().degraded})


@main.route('/api/simulate', methods=['GET'])
def simulate():
    # Stand-in for the Bluetooth harvester so the app can be demoed without hardware
    return jsonify(simulate_energy())


@main.route('/api/nutrition', methods=['POST'])
def nutrition():
    data = json_body()
    return jsonify(get_services().nutrition.lookup(data.get('query')))
