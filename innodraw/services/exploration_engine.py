# innodraw/services/exploration_engine.py
from innodraw.models.diagram import Component, Diagram
from innodraw.models.exploration import (
    ClickEvent,
    ComponentVisual,
    Connection,
    DetailPanel,
    ExplorationEvent,
    ExplorationMode,
    ExplorationState,
    ExplorationView,
    HoverEvent,
    MouseLeaveEvent,
    ToggleModeEvent,
    Tooltip,
    VisualWeight,
)

FULL_OPACITY = 1.0
RELATED_OPACITY = 0.8
UNRELATED_OPACITY = 0.3
TOOLTIP_OFFSET = 10
UNKNOWN_TARGET_LABEL = "another component"
NO_CONNECTIONS_MESSAGE = "No direct connections defined."


def reduce(diagram: Diagram, state: ExplorationState, event: ExplorationEvent) -> ExplorationState:
    if isinstance(event, ToggleModeEvent):
        return _toggle_mode(state, event.mode)
    if isinstance(event, ClickEvent):
        return _click(diagram, state, event.component_id)
    if isinstance(event, HoverEvent):
        return _hover(diagram, state, event)
    if isinstance(event, MouseLeaveEvent):
        return state.model_copy(update={"tooltip": None})
    raise TypeError(f"Unsupported exploration event: {type(event).__name__}")


def _toggle_mode(state: ExplorationState, mode: ExplorationMode) -> ExplorationState:
    if mode == ExplorationMode.EXPLAIN:
        if state.mode == ExplorationMode.EXPLORE:
            return state.model_copy(update={"previous_mode": _flip_explain(state.previous_mode), "tooltip": None})
        flipped = _flip_explain(state.mode)
        return ExplorationState(mode=flipped, previous_mode=flipped)
    if mode == ExplorationMode.EXPLORE:
        if state.mode == ExplorationMode.EXPLORE:
            return ExplorationState(mode=state.previous_mode, previous_mode=state.previous_mode)
        return ExplorationState(mode=ExplorationMode.EXPLORE, previous_mode=state.mode)
    return state


def _flip_explain(mode: ExplorationMode) -> ExplorationMode:
    return ExplorationMode.PLAIN if mode == ExplorationMode.EXPLAIN else ExplorationMode.EXPLAIN


def resting_mode(state: ExplorationState) -> ExplorationMode:
    """The explain setting underneath explore."""
    return state.previous_mode if state.mode == ExplorationMode.EXPLORE else state.mode


def reset_for_new_model(state: ExplorationState) -> ExplorationState:
    """Leave explore and drop selection and tooltip, keeping the explain setting."""
    mode = resting_mode(state)
    return ExplorationState(mode=mode, previous_mode=mode)


def _click(diagram: Diagram, state: ExplorationState, component_id: str) -> ExplorationState:
    if state.mode != ExplorationMode.EXPLORE or diagram.get_component(component_id) is None:
        return state
    if state.selected_id == component_id:
        return state.model_copy(update={"selected_id": None})
    return state.model_copy(update={"selected_id": component_id})


def _hover(diagram: Diagram, state: ExplorationState, event: HoverEvent) -> ExplorationState:
    if state.mode != ExplorationMode.EXPLAIN:
        return state
    component = diagram.get_component(event.component_id)
    if component is None or not component.is_visual:
        return state
    tooltip = Tooltip(content=component.description, x=event.x, y=event.y - TOOLTIP_OFFSET)
    return state.model_copy(update={"tooltip": tooltip})


def selected_component(diagram: Diagram, state: ExplorationState) -> Component | None:
    if state.mode != ExplorationMode.EXPLORE:
        return None
    return diagram.get_component(state.selected_id)


def derive_related_ids(diagram: Diagram, state: ExplorationState) -> list[str]:
    """Targets of the selected component's own relationships, in declaration order."""
    selected = selected_component(diagram, state)
    if selected is None:
        return []
    related: list[str] = []
    for relationship in selected.relationships:
        if relationship.target_id not in related:
            related.append(relationship.target_id)
    return related


def derive_visuals(diagram: Diagram, state: ExplorationState) -> dict[str, ComponentVisual]:
    selected = selected_component(diagram, state)
    related = set(derive_related_ids(diagram, state))
    visuals: dict[str, ComponentVisual] = {}

    for component in diagram.components:
        if state.mode != ExplorationMode.EXPLORE:
            pointer = state.mode == ExplorationMode.EXPLAIN and component.is_visual
            visuals[component.id] = ComponentVisual(weight=VisualWeight.FULL, opacity=FULL_OPACITY, pointer=pointer)
        elif selected is None or component.id == selected.id:
            visuals[component.id] = ComponentVisual(weight=VisualWeight.FULL, opacity=FULL_OPACITY, pointer=True)
        elif component.id in related:
            visuals[component.id] = ComponentVisual(
                weight=VisualWeight.RELATED, opacity=RELATED_OPACITY, pointer=False
            )
        else:
            visuals[component.id] = ComponentVisual(
                weight=VisualWeight.UNRELATED, opacity=UNRELATED_OPACITY, pointer=True
            )
    return visuals


def derive_detail_panel(diagram: Diagram, state: ExplorationState) -> DetailPanel | None:
    selected = selected_component(diagram, state)
    if selected is None:
        return None

    connections = []
    for relationship in selected.relationships:
        target = diagram.get_component(relationship.target_id)
        connections.append(Connection(
            target_id=relationship.target_id,
            description=relationship.description,
            target_label=target.label if target else UNKNOWN_TARGET_LABEL,
        ))
    return DetailPanel(
        component_id=selected.id,
        label=selected.label,
        description=selected.description,
        connections=connections,
        empty_message=None if connections else NO_CONNECTIONS_MESSAGE,
    )


def derive_view(diagram: Diagram, state: ExplorationState) -> ExplorationView:
    return ExplorationView(
        state=state,
        related_ids=derive_related_ids(diagram, state),
        visuals=derive_visuals(diagram, state),
        detail_panel=derive_detail_panel(diagram, state),
    )
