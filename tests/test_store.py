from config import DEFAULT_METRIC, MAP_CONFIG
from store import SelectionStore


def test_defaults():
    store = SelectionStore()
    assert store.selected_region is None
    assert store.selected_metric == DEFAULT_METRIC
    assert (store.selected_year, store.selected_week) == (2010, 26)
    assert store.zoom == MAP_CONFIG['initial_zoom']


def test_setters_accept_updater_functions():
    store = SelectionStore()
    store.set_selected_year(lambda year: year + 5)
    store.set_selected_week(lambda week: week - 1)
    assert store.selected_year == 2015
    assert store.selected_week == 25

    store.set_selected_week(52)
    assert store.selected_week == 52


def test_reset_clears_only_the_region():
    store = SelectionStore()
    store.set_selected_region('AT130')
    store.set_selected_metric('pm10')
    store.reset_selection()
    assert store.selected_region is None
    assert store.selected_metric == 'pm10'


def test_serialization_survives_the_browser_store():
    store = SelectionStore()
    store.set_selected_region('DE300')
    store.set_map_view(5.2, (13.4, 52.5))

    restored = SelectionStore.from_dict(store.to_dict())
    assert restored.to_dict() == store.to_dict()
    assert restored.center == (13.4, 52.5)


def test_from_empty_data_gives_defaults():
    assert SelectionStore.from_dict(None).to_dict() == SelectionStore().to_dict()
    assert SelectionStore.from_dict({'unknown': 1}).selected_year == 2010
