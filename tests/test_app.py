import importlib
import os

import pytest

pytest.importorskip('flask')
pytest.importorskip('dotenv')

TESTAPP_DIR = os.path.join(os.path.dirname(__file__), os.pardir, 'testapp')


@pytest.fixture
def app_module(monkeypatch):
    monkeypatch.syspath_prepend(TESTAPP_DIR)
    module = importlib.import_module('app')
    monkeypatch.setattr(module, 'controller', module.create_controller())
    return module


@pytest.fixture
def client(app_module):
    app_module.app.config['TESTING'] = True
    return app_module.app.test_client()


def test_data(client):
    state = client.get('/api/data').get_json()
    assert state['total'] == 10
    assert state['filtered'] == 10
    assert state['filters'] == []
    assert all(row['_visible'] for row in state['data'])
    assert not any(key.startswith('_bitmask') for key in state['data'][0])


def test_add_and_remove_filter(client):
    state = client.post('/api/filter/add', json={'key': 'colour', 'value': 'black'}).get_json()
    assert state['filtered'] == 7
    assert state['filters'] == [{'key': 'colour', 'value': 1, 'active': ['black']}]

    state = client.post('/api/filter/remove', json={'key': 'colour', 'value': 'black'}).get_json()
    assert state['filtered'] == 10


def test_toggle_and_clear(client):
    state = client.post('/api/filter/toggle', json={'key': 'isCute'}).get_json()
    assert state['filtered'] == 4
    client.post('/api/filter/add', json={'key': 'minAge', 'value': 12})
    state = client.post('/api/filter/clear').get_json()
    assert state['filtered'] == 10


def test_sort_and_history(client):
    state = client.post('/api/sort', json={'property': 'cuteness', 'ascending': False}).get_json()
    assert state['order'][0] == 5

    client.post('/api/filter/add', json={'key': 'name', 'value': 'Boris'})
    state = client.post('/api/undo').get_json()
    assert state['filtered'] == 10
    assert state['can_redo'] is True
    state = client.post('/api/redo').get_json()
    assert state['filtered'] == 1


def test_top_and_groups(client):
    assert client.get('/api/top/isCute').get_json()['record']['name'] == 'Masha'
    groups = client.get('/api/groups/colour').get_json()['groups']
    assert {'value': 'grey', 'count': 3} in groups


def test_errors(client):
    assert client.post('/api/filter/add', json={}).status_code == 400
    assert client.post('/api/filter/add', json={'key': 'weight', 'value': 1}).status_code == 404
    assert client.post('/api/sort', json={}).status_code == 400
