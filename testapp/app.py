"""
Test app for lux-crossfilter.
A simple Flask app serving the cats dataset through a CrossfilterController.
"""

import copy
import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from flask import Flask, request, jsonify
from dotenv import load_dotenv

load_dotenv()

from lux_crossfilter import CrossfilterController, UnknownFilterError, group_counts
from data import CATS, FILTER_MAP, PREDICATES, SORT


def create_controller():
    return CrossfilterController(
        FILTER_MAP,
        sort=SORT,
        predicates=PREDICATES,
        memento_size=int(os.getenv('LUX_CROSSFILTER_MEMENTO_SIZE', '50')),
        records=copy.deepcopy(CATS),
    )


app = Flask(__name__)

# --- State (in-memory, single-user for testing) ---
controller = create_controller()


def _public(record):
    return {k: v for k, v in record.items() if not k.startswith('_')}


def _data_state():
    """Return all cats annotated with _visible, plus filter state. Used by all filter routes."""
    visible_ids = [cat['id'] for cat in controller.content]
    return {
        'data': [{**_public(cat), '_visible': cat['id'] in visible_ids} for cat in CATS],
        'order': visible_ids,
        'total': controller.total(),
        'filtered': controller.size(),
        'filters': controller.get_active_filters(),
        'can_undo': controller.history.can_undo,
        'can_redo': controller.history.can_redo,
    }


def _filter_args():
    body = request.json or {}
    key = body.get('key')
    if not key:
        return None, None, (jsonify({'error': 'No filter key provided'}), 400)
    return key, body.get('value'), None


@app.errorhandler(UnknownFilterError)
def unknown_filter(e):
    return jsonify({'error': str(e)}), 404


# --- Data ---

@app.route('/api/data')
def get_data():
    return jsonify(_data_state())


# --- Filters ---

@app.route('/api/filter/add', methods=['POST'])
def add_filter():
    key, value, error = _filter_args()
    if error:
        return error
    controller.add_filter(key, True if value is None else value)
    return jsonify(_data_state())


@app.route('/api/filter/remove', methods=['POST'])
def remove_filter():
    key, value, error = _filter_args()
    if error:
        return error
    controller.remove_filter(key, value)
    return jsonify(_data_state())


@app.route('/api/filter/toggle', methods=['POST'])
def toggle_filter():
    key, value, error = _filter_args()
    if error:
        return error
    controller.toggle_filter(key, True if value is None else value)
    return jsonify(_data_state())


@app.route('/api/filter/clear', methods=['POST'])
def clear_filters():
    controller.clear_all_filters()
    return jsonify(_data_state())


# --- Sorting, history, helpers ---

@app.route('/api/sort', methods=['POST'])
def sort_content():
    body = request.json or {}
    prop = body.get('property')
    if not prop:
        return jsonify({'error': 'No sort property provided'}), 400
    controller.sort_content(prop, bool(body.get('ascending', True)))
    return jsonify(_data_state())


@app.route('/api/undo', methods=['POST'])
def undo():
    controller.undo()
    return jsonify(_data_state())


@app.route('/api/redo', methods=['POST'])
def redo():
    controller.redo()
    return jsonify(_data_state())


@app.route('/api/top/<key>')
def top(key):
    count = request.args.get('count', 1, type=int)
    record = controller.top(key, count)
    return jsonify({'record': _public(record) if record else None})


@app.route('/api/groups/<key>')
def groups(key):
    counts = group_counts(controller, key)
    return jsonify({'groups': [{'value': value, 'count': count} for value, count in counts.items()]})


if __name__ == '__main__':
    print("Test app running at http://localhost:5003")
    print(f"Loaded {len(CATS)} cats")
    app.run(debug=True, port=5003)
