import asyncio
import copy
import json
import re

import pytest

from innodraw.models.diagram import Diagram


def _visual(component_id, label, x, y, targets=()):
    return {
        "id": component_id,
        "kind": "visual",
        "x": x,
        "y": y,
        "width": 80,
        "height": 80,
        "label": label,
        "description": f"The {label.lower()} stage of the cycle.",
        "relationships": [
            {"targetId": target, "description": "flows into"} for target in targets
        ],
    }


def _connector(component_id, label, x, y, x2, y2):
    return {
        "id": component_id,
        "kind": "connector",
        "x": x,
        "y": y,
        "x2": x2,
        "y2": y2,
        "label": label,
        "description": f"{label} between two stages.",
    }


WATER_CYCLE = {
    "components": [
        _visual("ocean", "Ocean", 20, 380, targets=["cloud"]),
        _connector("evaporation", "Evaporation", 60, 380, 60, 120),
        _visual("cloud", "Cloud", 20, 40, targets=["rain"]),
        _connector("condensation", "Condensation", 100, 80, 300, 80),
        _visual("rain", "Rain", 300, 40, targets=["river"]),
        _visual("river", "River", 300, 380),
    ]
}

_LABEL_RE = re.compile(r'"(.+?)"')


class FakeBackend:
    """Stands in for the Gemini binding with scripted, failure-prone behaviour."""

    def __init__(
        self,
        payload=None,
        raw_text=None,
        structural_error=None,
        failing_labels=(),
        delays=None,
        chunks=("Hello", " there", "!"),
        stream_error_after=None,
    ):
        self.raw_text = raw_text if raw_text is not None else json.dumps(payload or WATER_CYCLE)
        self.structural_error = structural_error
        self.failing_labels = set(failing_labels)
        self.delays = delays or {}
        self.chunks = list(chunks)
        self.stream_error_after = stream_error_after
        self.structural_prompts: list[str] = []
        self.artwork_labels: list[str] = []
        self.completed_labels: list[str] = []
        self.cancelled_labels: list[str] = []
        self.opened_histories = []
        self.sent_messages: list[str] = []

    async def generate_structured_diagram(self, prompt):
        self.structural_prompts.append(prompt)
        if self.structural_error:
            raise self.structural_error
        return self.raw_text

    async def generate_component_artwork(self, prompt):
        label = _LABEL_RE.search(prompt).group(1)
        self.artwork_labels.append(label)
        try:
            await asyncio.sleep(self.delays.get(label, 0))
        except asyncio.CancelledError:
            self.cancelled_labels.append(label)
            raise
        if label in self.failing_labels:
            raise RuntimeError(f"image backend rejected {label}")
        self.completed_labels.append(label)
        return f"data:image/png;base64,{label}"

    def open_chat_session(self, seed_history):
        self.opened_histories.append(list(seed_history))
        return object()

    async def send_and_stream(self, handle, text):
        self.sent_messages.append(text)
        for index, chunk in enumerate(self.chunks):
            if self.stream_error_after is not None and index == self.stream_error_after:
                raise ConnectionError("stream dropped")
            await asyncio.sleep(0)
            yield chunk


@pytest.fixture
def water_cycle_payload():
    return copy.deepcopy(WATER_CYCLE)


@pytest.fixture
def water_cycle_diagram():
    from innodraw.services.diagram_assembler import parse_diagram

    return parse_diagram(json.dumps(WATER_CYCLE))


@pytest.fixture
def empty_diagram():
    return Diagram(components=[])


@pytest.fixture
def backend_factory():
    return FakeBackend
