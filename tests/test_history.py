from lux_crossfilter import CrossfilterController, FilterHistory

from .conftest import filter_map, names, predicates


def make_controller(cats, **kwargs):
    return CrossfilterController(
        filter_map(),
        sort={'sort_property': 'name'},
        predicates=predicates(),
        records=cats,
        **kwargs
    )


def test_undo_and_redo_filters(cats):
    controller = make_controller(cats)
    controller.add_filter('colour', 'black')
    controller.add_filter('minAge', 10)
    assert names(controller.content) == ['Jimmy', 'Julia', 'Simon']

    entry = controller.undo()
    assert entry.operation == 'add'
    assert entry.key == 'minAge'
    assert controller.size() == 7
    assert not controller.is_active_filter('minAge')

    controller.undo()
    assert controller.size() == 10
    assert controller.undo() is None

    controller.redo()
    assert controller.is_active_filter('colour', 'black')
    assert controller.size() == 7
    controller.redo()
    assert controller.size() == 3
    assert controller.redo() is None


def test_undo_clear_all(cats):
    controller = make_controller(cats)
    controller.add_filter('country', 'Britain')
    controller.add_filter('country', 'Russia')
    controller.clear_all_filters()
    assert controller.size() == 10

    controller.undo()
    assert names(controller.content) == ['Irina']
    assert controller.filter_state('country').active == ['Britain', 'Russia']


def test_undo_does_not_record_history(cats):
    controller = make_controller(cats)
    controller.add_filter('name', 'Boris')
    controller.undo()
    assert len(controller.history) == 1
    assert controller.history.redo_count == 1


def test_new_operation_discards_redo(cats):
    controller = make_controller(cats)
    controller.add_filter('name', 'Boris')
    controller.add_filter('minAge', 5)
    controller.undo()
    controller.add_filter('colour', 'grey')
    assert not controller.history.can_redo
    assert [e.key for e in controller.history.entries()] == ['name', 'colour']


def test_memento_size(cats):
    controller = make_controller(cats, memento_size=2)
    for value in ('black', 'white', 'grey'):
        controller.add_filter('colour', value)
    assert controller.history.undo_count == 2
    controller.undo()
    controller.undo()
    assert controller.filter_state('colour').active == ['black']
    assert not controller.history.can_undo


def test_descriptions(cats):
    controller = make_controller(cats)
    controller.add_filter('name', 'Boris')
    controller.remove_filter('name')
    controller.clear_all_filters()
    add, remove, clear = controller.history.entries()
    assert add.undo_description == "undo add filter name='Boris'"
    assert remove.redo_description == 'redo remove filter name'
    assert clear.undo_description == 'undo clear all filters'


def test_clear_history():
    restored = []
    history = FilterHistory(restored.append)
    for i in range(4):
        history.record('add', 'k', i, {'i': i}, {'i': i + 1})
    history.undo()
    assert restored == [{'i': 3}]

    history.clear_history(2)
    assert history.undo_count == 2
    assert history.redo_count == 0
    assert [e.value for e in history.entries()] == [1, 2]

    history.clear_history(-1)
    assert len(history) == 2
    history.clear_history()
    assert len(history) == 0
    assert not history.can_undo
