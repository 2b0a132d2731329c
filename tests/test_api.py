"""
Tests for the HTTP endpoints
"""

import pytest


class TestResolveEndpoint:
    """POST /api/v1/tags/resolve"""

    def test_resolve(self, client):
        response = client.post('/api/v1/tags/resolve', json={
            'text': 'Price: <TAG get_param price />',
            'params': {'price': '1234'}
        })

        assert response.status_code == 200
        data = response.get_json()
        assert data['output'] == 'Price: 1234'
        assert data['errors'] == []
        assert data['params'] == {'price': '1234'}

    def test_dry_run(self, client, spy):
        response = client.post('/api/v1/tags/resolve', json={
            'text': '<TAG spy x />',
            'dry_run': True
        })

        assert response.get_json()['output'] == '1'
        assert spy.calls == []

    def test_recovered_error(self, client):
        response = client.post('/api/v1/tags/resolve', json={
            'text': '<TAG on_error n/a +><TAG nope /></TAG on_error>'
        })

        assert response.status_code == 200
        assert response.get_json() == {
            'output': 'n/a',
            'errors': ['Unknown function: nope'],
            'params': {}
        }

    def test_parse_error(self, client):
        response = client.post('/api/v1/tags/resolve', json={'text': '<TAG get_param'})

        assert response.status_code == 422
        data = response.get_json()
        assert data['error'].startswith('Parse error')
        assert data['errors'] == [data['error']]

    def test_missing_text(self, client):
        response = client.post('/api/v1/tags/resolve', json={})

        assert response.status_code == 400
        assert response.get_json()['error'] == 'text is required'

    def test_invalid_params(self, client):
        response = client.post('/api/v1/tags/resolve', json={'text': 'x', 'params': ['a']})

        assert response.status_code == 400

    def test_non_json_body(self, client):
        response = client.post('/api/v1/tags/resolve', data='not json', content_type='text/plain')

        assert response.status_code == 400


class TestValidateEndpoint:
    """POST /api/v1/tags/validate"""

    def test_valid(self, client):
        response = client.post('/api/v1/tags/validate', json={'text': '<TAG get_param a />'})

        assert response.status_code == 200
        assert response.get_json() == {'valid': True, 'errors': []}

    def test_invalid(self, client):
        response = client.post('/api/v1/tags/validate', json={'text': '<TAG nope />'})

        assert response.get_json() == {'valid': False, 'errors': ['Unknown function: nope']}

    def test_missing_text(self, client):
        assert client.post('/api/v1/tags/validate', json={}).status_code == 400


class TestConditionEndpoint:
    """POST /api/v1/tags/condition"""

    def test_condition(self, client):
        response = client.post('/api/v1/tags/condition', json={
            'condition': '<TAG get_param qty /> > 5',
            'params': {'qty': '7'}
        })

        assert response.status_code == 200
        assert response.get_json() == {'result': True, 'errors': []}

    def test_failed_condition(self, client):
        response = client.post('/api/v1/tags/condition', json={'condition': '5 >'})

        data = response.get_json()
        assert data['result'] is False
        assert len(data['errors']) == 1

    def test_missing_condition(self, client):
        assert client.post('/api/v1/tags/condition', json={}).status_code == 400


class TestFunctionsEndpoint:
    """GET /api/v1/tags/functions"""

    def test_lists_registered_functions(self, client):
        response = client.get('/api/v1/tags/functions')

        assert response.status_code == 200
        names = [f['name'] for f in response.get_json()['functions']]
        assert 'get_param' in names
        assert 'set_param' in names
        assert 'spy' in names

    def test_descriptions(self, client):
        functions = client.get('/api/v1/tags/functions').get_json()['functions']
        by_name = {f['name']: f['description'] for f in functions}

        assert by_name['get_param'] == 'Value of a context parameter, or a default'


class TestCors:
    """CORS headers for configured origins"""

    def test_allowed_origin(self, client):
        response = client.get('/api/v1/tags/functions', headers={'Origin': 'http://localhost:5173'})

        assert response.headers.get('Access-Control-Allow-Origin') == 'http://localhost:5173'
