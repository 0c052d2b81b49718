import logging

import httpx

from spinnergy.errors import UpstreamError, ValidationError


class NutritionClient:
    """Thin proxy to the Nutritionix natural-language nutrients endpoint.

    The server holds the API credentials so the browser never sees them.
    """

    def __init__(self, app_id, app_key, url, timeout=10.0, transport=None, logger=None):
        self._app_id = app_id
        self._app_key = app_key
        self._url = url
        self._timeout = timeout
        self._transport = transport
        self._logger = logger or logging.getLogger(__name__)

    @property
    def configured(self):
        return bool(self._app_id and self._app_key)

    def lookup(self, query):
        if not query or not str(query).strip():
            raise ValidationError('query required')
        if not self.configured:
            raise UpstreamError('Nutritionix credentials not configured on server.')

        headers = {
            'Content-Type': 'application/json',
            'x-app-id': self._app_id,
            'x-app-key': self._app_key,
        }
        try:
            with httpx.Client(timeout=self._timeout, transport=self._transport) as client:
                response = client.post(self._url, json={'query': query}, headers=headers)
                response.raise_for_status()
                return response.json()
        except (httpx.HTTPError, ValueError) as exc:
            self._logger.warning(f'[nutrition] upstream error: {exc}')
            raise UpstreamError('Nutritionix API error') from exc
