import pytest

from innodraw.models.exploration import (
    ClickEvent,
    ExplorationEventRequest,
    ExplorationMode,
    ExplorationState,
    HoverEvent,
    MouseLeaveEvent,
    ToggleModeEvent,
    VisualWeight,
)
from innodraw.services import exploration_engine as engine

EXPLORING = ExplorationState(mode=ExplorationMode.EXPLORE)


def _select(diagram, *component_ids, state=EXPLORING):
    for component_id in component_ids:
        state = engine.reduce(diagram, state, ClickEvent(component_id=component_id))
    return state


def test_default_mode_is_explain():
    assert ExplorationState().mode == ExplorationMode.EXPLAIN


def test_selecting_a_then_b_selects_b(water_cycle_diagram):
    ids = [c.id for c in water_cycle_diagram.components]
    for a in ids:
        for b in ids:
            if a != b:
                assert _select(water_cycle_diagram, a, b).selected_id == b


def test_selecting_the_same_component_twice_clears_selection(water_cycle_diagram):
    for component in water_cycle_diagram.components:
        assert _select(water_cycle_diagram, component.id, component.id).selected_id is None


def test_related_ids_are_exactly_the_relationship_targets(water_cycle_diagram):
    for component in water_cycle_diagram.components:
        state = _select(water_cycle_diagram, component.id)
        expected = {r.target_id for r in component.relationships}
        assert set(engine.derive_related_ids(water_cycle_diagram, state)) == expected


def test_water_cycle_related_ids_are_not_transitive(water_cycle_diagram):
    state = _select(water_cycle_diagram, "ocean")
    assert engine.derive_related_ids(water_cycle_diagram, state) == ["cloud"]

    state = _select(water_cycle_diagram, "cloud", state=state)
    assert engine.derive_related_ids(water_cycle_diagram, state) == ["rain"]


def test_three_tier_visual_weights(water_cycle_diagram):
    state = _select(water_cycle_diagram, "ocean")
    visuals = engine.derive_visuals(water_cycle_diagram, state)

    assert visuals["ocean"].weight == VisualWeight.FULL
    assert visuals["cloud"].weight == VisualWeight.RELATED
    assert not visuals["cloud"].pointer
    for other in ("evaporation", "condensation", "rain", "river"):
        assert visuals[other].weight == VisualWeight.UNRELATED
        assert visuals[other].pointer
    assert visuals["ocean"].opacity > visuals["cloud"].opacity > visuals["rain"].opacity


def test_no_selection_renders_everything_full_and_clickable(water_cycle_diagram):
    visuals = engine.derive_visuals(water_cycle_diagram, EXPLORING)
    assert all(v.weight == VisualWeight.FULL and v.pointer for v in visuals.values())


def test_pointer_affordance_outside_explore(water_cycle_diagram):
    explain = engine.derive_visuals(water_cycle_diagram, ExplorationState(mode=ExplorationMode.EXPLAIN))
    assert explain["ocean"].pointer and not explain["evaporation"].pointer

    plain = engine.derive_visuals(water_cycle_diagram, ExplorationState(mode=ExplorationMode.PLAIN))
    assert not any(v.pointer for v in plain.values())


def test_stale_selected_id_falls_back_to_nothing_selected(water_cycle_diagram):
    state = ExplorationState(mode=ExplorationMode.EXPLORE, selected_id="glacier")
    view = engine.derive_view(water_cycle_diagram, state)
    assert view.related_ids == []
    assert view.detail_panel is None
    assert all(v.weight == VisualWeight.FULL for v in view.visuals.values())


def test_clicks_are_ignored_outside_explore(water_cycle_diagram):
    state = ExplorationState(mode=ExplorationMode.EXPLAIN)
    assert engine.reduce(water_cycle_diagram, state, ClickEvent(component_id="ocean")) == state


def test_clicking_an_unknown_component_is_ignored(water_cycle_diagram):
    state = _select(water_cycle_diagram, "ocean")
    assert _select(water_cycle_diagram, "glacier", state=state).selected_id == "ocean"


def test_connectors_can_be_selected(water_cycle_diagram):
    state = _select(water_cycle_diagram, "evaporation")
    assert state.selected_id == "evaporation"
    assert engine.derive_related_ids(water_cycle_diagram, state) == []


def test_toggle_explore_clears_selection_both_ways(water_cycle_diagram):
    state = _select(water_cycle_diagram, "ocean")
    left = engine.reduce(water_cycle_diagram, state, ToggleModeEvent(mode=ExplorationMode.EXPLORE))
    assert left.mode == ExplorationMode.EXPLAIN and left.selected_id is None

    entered = engine.reduce(water_cycle_diagram, left, ToggleModeEvent(mode=ExplorationMode.EXPLORE))
    assert entered.mode == ExplorationMode.EXPLORE and entered.selected_id is None


def test_leaving_explore_restores_explain_and_its_tooltips(water_cycle_diagram):
    explore = ToggleModeEvent(mode=ExplorationMode.EXPLORE)
    state = engine.reduce(water_cycle_diagram, ExplorationState(), explore)
    state = engine.reduce(water_cycle_diagram, state, explore)
    assert state.mode == ExplorationMode.EXPLAIN

    state = engine.reduce(water_cycle_diagram, state, HoverEvent(component_id="ocean", x=10, y=20))
    assert state.tooltip is not None


def test_leaving_explore_restores_plain(water_cycle_diagram):
    explore = ToggleModeEvent(mode=ExplorationMode.EXPLORE)
    state = engine.reduce(water_cycle_diagram, ExplorationState(mode=ExplorationMode.PLAIN), explore)
    state = engine.reduce(water_cycle_diagram, state, explore)
    assert state.mode == ExplorationMode.PLAIN


def test_toggle_explain_flips_and_clears_tooltip(water_cycle_diagram):
    state = ExplorationState(mode=ExplorationMode.EXPLAIN)
    state = engine.reduce(water_cycle_diagram, state, HoverEvent(component_id="ocean", x=50, y=400))
    assert state.tooltip is not None

    state = engine.reduce(water_cycle_diagram, state, ToggleModeEvent(mode=ExplorationMode.EXPLAIN))
    assert state.mode == ExplorationMode.PLAIN
    assert state.tooltip is None

    state = engine.reduce(water_cycle_diagram, state, ToggleModeEvent(mode=ExplorationMode.EXPLAIN))
    assert state.mode == ExplorationMode.EXPLAIN


def test_toggle_explain_while_exploring_changes_the_restored_mode(water_cycle_diagram):
    state = _select(water_cycle_diagram, "ocean", state=engine.reduce(
        water_cycle_diagram, ExplorationState(), ToggleModeEvent(mode=ExplorationMode.EXPLORE)
    ))
    state = engine.reduce(water_cycle_diagram, state, ToggleModeEvent(mode=ExplorationMode.EXPLAIN))
    assert state.mode == ExplorationMode.EXPLORE
    assert state.selected_id == "ocean"
    assert engine.resting_mode(state) == ExplorationMode.PLAIN

    state = engine.reduce(water_cycle_diagram, state, ToggleModeEvent(mode=ExplorationMode.EXPLORE))
    assert state.mode == ExplorationMode.PLAIN


def test_reset_for_new_model_keeps_the_explain_setting(water_cycle_diagram):
    state = engine.reduce(
        water_cycle_diagram, ExplorationState(mode=ExplorationMode.PLAIN), ToggleModeEvent(mode=ExplorationMode.EXPLORE)
    )
    state = _select(water_cycle_diagram, "rain", state=state)

    fresh = engine.reset_for_new_model(state)
    assert fresh.mode == ExplorationMode.PLAIN
    assert fresh.selected_id is None and fresh.tooltip is None


def test_hover_shows_description_tooltip_near_pointer(water_cycle_diagram):
    state = engine.reduce(
        water_cycle_diagram, ExplorationState(), HoverEvent(component_id="cloud", x=60, y=40)
    )
    assert state.tooltip.content == "The cloud stage of the cycle."
    assert (state.tooltip.x, state.tooltip.y) == (60, 30)

    cleared = engine.reduce(water_cycle_diagram, state, MouseLeaveEvent())
    assert cleared.tooltip is None


@pytest.mark.parametrize(
    "mode, component_id",
    [
        (ExplorationMode.EXPLAIN, "evaporation"),
        (ExplorationMode.EXPLORE, "ocean"),
        (ExplorationMode.PLAIN, "ocean"),
    ],
)
def test_hover_without_tooltip(water_cycle_diagram, mode, component_id):
    state = ExplorationState(mode=mode)
    after = engine.reduce(water_cycle_diagram, state, HoverEvent(component_id=component_id, x=1, y=1))
    assert after.tooltip is None


def test_detail_panel_lists_connections_with_target_labels(water_cycle_diagram):
    panel = engine.derive_detail_panel(water_cycle_diagram, _select(water_cycle_diagram, "rain"))
    assert panel.label == "Rain"
    assert [(c.description, c.target_label) for c in panel.connections] == [("flows into", "River")]
    assert panel.empty_message is None


def test_detail_panel_for_component_without_connections(water_cycle_diagram):
    panel = engine.derive_detail_panel(water_cycle_diagram, _select(water_cycle_diagram, "river"))
    assert panel.connections == []
    assert panel.empty_message == "No direct connections defined."


def test_detail_panel_names_broken_targets_generically(water_cycle_diagram):
    diagram = water_cycle_diagram.model_copy(deep=True)
    diagram.get_component("ocean").relationships[0].target_id = "atmosphere"

    panel = engine.derive_detail_panel(diagram, _select(diagram, "ocean"))
    assert panel.connections[0].target_label == "another component"


def test_event_request_discriminates_on_type():
    request = ExplorationEventRequest.model_validate(
        {"event": {"type": "toggle_mode", "mode": "explore"}}
    )
    assert isinstance(request.event, ToggleModeEvent)
    assert request.event.mode == ExplorationMode.EXPLORE
