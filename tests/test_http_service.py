from sitemapper.services.http_service import HttpService
from sitemapper.exceptions import HttpFetchError
from unittest.mock import Mock
import requests


def test_fetch_success():
    mock_http_client = Mock()
    mock_http_client.return_value.status_code = 200
    mock_http_client.return_value.text = 'hello world'
    http = HttpService(user_agent='TestAgent', http_client=mock_http_client)
    response = http.fetch('http://example.com')
    assert response.status_code == 200
    assert response.text == 'hello world'


def test_fetch_sends_user_agent_and_timeouts():
    mock_http_client = Mock()
    mock_http_client.return_value.status_code = 200
    mock_http_client.return_value.text = ''
    http = HttpService(user_agent='TestAgent', http_client=mock_http_client, timeout=3, read_timeout=7)
    http.fetch('http://example.com')
    _, kwargs = mock_http_client.call_args
    assert kwargs['headers'] == {'User-Agent': 'TestAgent'}
    assert kwargs['timeout'] == (3, 7)


def test_fetch_wraps_requests_exception():
    mock_http_client = Mock()
    mock_http_client.side_effect = requests.exceptions.Timeout("timed out")
    http = HttpService(user_agent='TestAgent', http_client=mock_http_client)

    try:
        http.fetch('http://example.com')
        assert False, "expected HttpFetchError"
    except HttpFetchError as e:
        assert "http://example.com" in str(e)
        assert isinstance(e.original, requests.exceptions.Timeout)


def test_fetch_content_type_from_headers():
    mock_http_client = Mock()
    mock_http_client.return_value.status_code = 200
    mock_http_client.return_value.text = '<html>test</html>'
    mock_http_client.return_value.headers = {'Content-Type': 'text/html; charset=utf-8'}
    http = HttpService(user_agent='TestAgent', http_client=mock_http_client)
    response = http.fetch('http://example.com')
    assert response.content_type == 'text/html; charset=utf-8'


def test_head_does_not_follow_redirects():
    mock_head = Mock()
    mock_head.return_value.status_code = 301
    mock_head.return_value.reason = 'Moved Permanently'
    mock_head.return_value.headers = {'Content-Type': 'text/html', 'Content-Length': '512'}
    http = HttpService(user_agent='TestAgent', http_client=Mock(), head_client=mock_head)

    response = http.head('http://example.com/old')

    assert mock_head.call_args.kwargs['allow_redirects'] is False
    assert response.status_code == 301
    assert response.reason == 'Moved Permanently'
    assert response.content_length == 512
    assert response.text == ''


def test_head_wraps_connection_error():
    mock_head = Mock(side_effect=requests.exceptions.ConnectionError("refused"))
    http = HttpService(user_agent='TestAgent', http_client=Mock(), head_client=mock_head)
    try:
        http.head('http://example.com')
        assert False, "expected HttpFetchError"
    except HttpFetchError as e:
        assert e.url == 'http://example.com'
