import unittest
from unittest.mock import MagicMock, Mock

import requests

from glpi.api.glpi_api import GlpiAPI, create_headers
from glpi.exceptions import AuthenticationError, QueryError


def make_response(status_code=200, json_data=None, text="", headers=None):
    response = Mock()
    response.status_code = status_code
    response.text = text
    response.headers = headers or {}
    if isinstance(json_data, Exception):
        response.json.side_effect = json_data
    else:
        response.json.return_value = json_data
    return response


class TestGlpiAPI(unittest.TestCase):
    """Test cases for the GlpiAPI base class."""

    def setUp(self):
        """Set up test environment before each test."""
        self.base_url = 'https://glpi.example.com/apirest.php'
        self.user_token = 'user_token_123'
        self.app_token = 'app_token_456'
        self.http = MagicMock()

        self.api = GlpiAPI(self.base_url + '/', self.user_token, app_token=self.app_token,
                           verify_ssl=False, timeout=15, http=self.http)

    def test_create_headers(self):
        """Test the create_headers function builds auth and session headers."""
        headers = create_headers(user_token='abc', app_token='app')
        self.assertEqual(headers['Authorization'], 'user_token abc')
        self.assertEqual(headers['App-Token'], 'app')
        self.assertNotIn('Session-Token', headers)

        headers = create_headers(session_token='sess')
        self.assertEqual(headers['Session-Token'], 'sess')
        self.assertNotIn('Authorization', headers)
        self.assertNotIn('App-Token', headers)
        self.assertEqual(headers['Accept'], 'application/json')

    def test_initialization(self):
        """Test the initialization strips the trailing slash and applies TLS settings."""
        self.assertEqual(self.api.base_url, self.base_url)
        self.assertIsNone(self.api.session_token)
        self.assertFalse(self.http.verify)
        self.assertEqual(self.api.timeout, 15)

    def test_authenticate_success(self):
        """Test initSession stores the session token."""
        self.http.get.return_value = make_response(200, {'session_token': 'sess123'})

        token = self.api.authenticate()

        self.assertEqual(token, 'sess123')
        self.assertIsNotNone(self.api.session_token)
        self.http.get.assert_called_once()
        args, kwargs = self.http.get.call_args
        self.assertEqual(args[0], f'{self.base_url}/initSession')
        self.assertEqual(kwargs['headers']['Authorization'], f'user_token {self.user_token}')
        self.assertEqual(kwargs['headers']['App-Token'], self.app_token)
        self.assertFalse(kwargs['allow_redirects'])
        self.assertEqual(kwargs['timeout'], 15)

    def test_authenticate_follows_one_redirect(self):
        """Test a redirect rewrites the base URL and retries initSession once."""
        new_base = 'https://new.example.com/glpi/apirest.php'
        self.http.get.side_effect = [
            make_response(301, headers={'Location': f'{new_base}/initSession/'}),
            make_response(200, {'session_token': 'sess123'}),
        ]

        self.api.authenticate()

        self.assertEqual(self.api.base_url, new_base)
        self.assertEqual(self.http.get.call_count, 2)
        self.assertEqual(self.http.get.call_args_list[1][0][0], f'{new_base}/initSession')
        self.assertEqual(self.api.session_token, 'sess123')

    def test_authenticate_resolves_relative_redirect(self):
        """Test a relative Location is resolved against the original URL."""
        self.http.get.side_effect = [
            make_response(302, headers={'Location': '/other/apirest.php/initSession'}),
            make_response(200, {'session_token': 'sess123'}),
        ]

        self.api.authenticate()

        self.assertEqual(self.api.base_url, 'https://glpi.example.com/other/apirest.php')

    def test_authenticate_second_redirect_fails(self):
        """Test a second redirect is not followed and is reported as a failure."""
        self.http.get.side_effect = [
            make_response(302, headers={'Location': 'https://a.example.com/apirest.php'}),
            make_response(302, text='moved again', headers={'Location': 'https://b.example.com/apirest.php'}),
        ]

        with self.assertRaises(AuthenticationError) as ctx:
            self.api.authenticate()

        self.assertEqual(ctx.exception.status_code, 302)
        self.assertEqual(ctx.exception.body, 'moved again')
        self.assertEqual(self.http.get.call_count, 2)
        self.assertIsNone(self.api.session_token)

    def test_authenticate_non_success_status(self):
        """Test a 401 raises AuthenticationError carrying status and body."""
        self.http.get.return_value = make_response(401, text='["ERROR_LOGIN_PARAMETERS_MISSING"]')

        with self.assertRaises(AuthenticationError) as ctx:
            self.api.authenticate()

        self.assertEqual(ctx.exception.status_code, 401)
        self.assertIn('ERROR_LOGIN_PARAMETERS_MISSING', ctx.exception.body)
        self.assertIn('401', str(ctx.exception))

    def test_authenticate_missing_session_token(self):
        """Test a success response without session_token is an authentication failure."""
        self.http.get.return_value = make_response(200, {'unexpected': True})

        with self.assertRaises(AuthenticationError):
            self.api.authenticate()
        self.assertIsNone(self.api.session_token)

    def test_authenticate_invalid_json(self):
        """Test a non-JSON initSession body is an authentication failure."""
        self.http.get.return_value = make_response(200, ValueError('not json'), text='<html>')

        with self.assertRaises(AuthenticationError):
            self.api.authenticate()

    def test_authenticate_network_error(self):
        """Test connection errors surface as AuthenticationError."""
        self.http.get.side_effect = requests.ConnectionError('refused')

        with self.assertRaises(AuthenticationError):
            self.api.authenticate()

    def test_get_authenticates_lazily(self):
        """Test the first GET opens a session before querying."""
        self.http.get.side_effect = [
            make_response(200, {'session_token': 'sess123'}),
            make_response(200, {'data': []}),
        ]

        result = self.api.get('search/Ticket', [('sort', 2)])

        self.assertEqual(result, {'data': []})
        self.assertEqual(self.http.get.call_count, 2)
        args, kwargs = self.http.get.call_args
        self.assertEqual(args[0], f'{self.base_url}/search/Ticket')
        self.assertEqual(kwargs['headers']['Session-Token'], 'sess123')
        self.assertEqual(kwargs['headers']['App-Token'], self.app_token)
        self.assertNotIn('Authorization', kwargs['headers'])
        self.assertEqual(kwargs['params'], [('sort', 2)])

    def test_get_reuses_existing_session(self):
        """Test no initSession call happens while a session is held."""
        self.api.session_token = 'sess123'
        self.http.get.return_value = make_response(200, {'ok': True})

        self.api.get('listSearchOptions/Ticket')

        self.http.get.assert_called_once()
        self.assertEqual(self.http.get.call_args[0][0], f'{self.base_url}/listSearchOptions/Ticket')

    def test_get_failure_invalidates_session(self):
        """Test a non-success status raises QueryError and drops the session."""
        self.api.session_token = 'sess123'
        self.http.get.return_value = make_response(401, text='["ERROR_SESSION_TOKEN_INVALID"]')

        with self.assertRaises(QueryError) as ctx:
            self.api.get('search/Ticket')

        self.assertEqual(ctx.exception.status_code, 401)
        self.assertIn('ERROR_SESSION_TOKEN_INVALID', ctx.exception.body)
        self.assertIsNone(self.api.session_token)

    def test_get_invalid_json_invalidates_session(self):
        """Test a malformed payload raises QueryError and drops the session."""
        self.api.session_token = 'sess123'
        self.http.get.return_value = make_response(200, ValueError('bad json'), text='oops')

        with self.assertRaises(QueryError):
            self.api.get('search/Ticket')
        self.assertIsNone(self.api.session_token)

    def test_get_network_error_invalidates_session(self):
        """Test a timeout raises QueryError and drops the session."""
        self.api.session_token = 'sess123'
        self.http.get.side_effect = requests.Timeout('timed out')

        with self.assertRaises(QueryError):
            self.api.get('search/Ticket')
        self.assertIsNone(self.api.session_token)

    def test_end_session_without_session_is_noop(self):
        """Test killSession is not called when no session is held."""
        self.api.end_session()
        self.http.get.assert_not_called()

    def test_end_session_calls_kill_session(self):
        """Test killSession is called with the session token and the token is cleared."""
        self.api.session_token = 'sess123'
        self.http.get.return_value = make_response(200, {})

        self.api.end_session()

        args, kwargs = self.http.get.call_args
        self.assertEqual(args[0], f'{self.base_url}/killSession')
        self.assertEqual(kwargs['headers']['Session-Token'], 'sess123')
        self.assertIsNone(self.api.session_token)

    def test_end_session_never_raises(self):
        """Test errors during killSession are swallowed."""
        self.api.session_token = 'sess123'
        self.http.get.side_effect = requests.ConnectionError('down')

        self.api.end_session()

        self.assertIsNone(self.api.session_token)


if __name__ == '__main__':
    unittest.main()
