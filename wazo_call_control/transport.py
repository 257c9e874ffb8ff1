# Copyright 2026 The Wazo Authors  (see the AUTHORS file)
# SPDX-License-Identifier: GPL-3.0-or-later

import logging

import requests
from requests import RequestException

from .exceptions import CommandRejected, TransportError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10


class HttpTransport:
    '''Sends rendered commands to the call control API

    4xx answers are rejections of the command. Anything that leaves the
    outcome unknown (network errors, 5xx, unreadable body) is a transport
    failure.
    '''

    def __init__(self, base_url, token=None, timeout=DEFAULT_TIMEOUT, verify=True, session=None):
        self._base_url = base_url.rstrip('/')
        self._token = token
        self._timeout = timeout
        self._verify = verify
        self._session = session or requests.Session()

    @classmethod
    def from_config(cls, config):
        return cls(
            config['base_url'],
            token=config.get('token'),
            timeout=config.get('timeout', DEFAULT_TIMEOUT),
            verify=config.get('verify', True),
        )

    def _headers(self):
        headers = {'Accept': 'application/json'}
        if self._token:
            headers['Authorization'] = f'Bearer {self._token}'
        return headers

    def execute(self, request):
        name = request.name or f'{request.method} {request.path}'
        url = f'{self._base_url}{request.path}'
        logger.debug('%s %s', request.method, url)
        try:
            response = self._session.request(
                request.method,
                url,
                json=request.body,
                params=request.query or None,
                headers=self._headers(),
                timeout=self._timeout,
                verify=self._verify,
            )
        except RequestException as e:
            logger.error('%s: %s', name, e)
            raise TransportError(name, e)

        if 400 <= response.status_code < 500:
            raise CommandRejected(name, response.status_code, self._errors(response))
        if response.status_code >= 500:
            logger.error('%s: server error %s', name, response.status_code)
            raise TransportError(name, f'HTTP {response.status_code}')

        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as e:
            logger.error('%s: unreadable response body', name)
            raise TransportError(name, e)

    @staticmethod
    def _errors(response):
        try:
            body = response.json()
        except ValueError:
            return [{'title': response.text or response.reason}]
        if isinstance(body, dict) and isinstance(body.get('errors'), list):
            return body['errors']
        return [{'title': str(body)}]
