# innodraw/core/prompts.py
# This file is the single source of truth for all AI prompt engineering.

DIAGRAM_STRUCTURE_PROMPT = """
You are an AI assistant for InnoDraw AI. A user wants to create a 2D model of an idea.
Convert the following user prompt into a structured JSON representation of a 2D model.

The model should consist of "visual" components for the main objects and "connector" components
for the lines that connect them. The canvas is {canvas_size}x{canvas_size}. Keep all coordinates
and sizes within this boundary and ensure components are well-distributed without overlapping.

Rules for every component:
1.  `id` must be unique across the whole model.
2.  A `visual` component needs `x`, `y` (top-left corner), `width` and `height` (suggest 80).
3.  A `connector` component needs `x`, `y` (start point) and `x2`, `y2` (end point).
4.  `label` is a short, user-friendly name; `description` is one simple sentence explaining
    what the component is or does.
5.  For each visual component, list its direct relationships with other components. Each
    relationship names the `targetId` of another component and a short sentence describing
    the relationship (e.g., 'sends power to').

User prompt: "{idea}"
""".strip()

DIAGRAM_RESPONSE_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "components": {
            "type": "ARRAY",
            "description": "An array of 2D components representing the model.",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "id": {"type": "STRING", "description": "A unique identifier for the component."},
                    "kind": {
                        "type": "STRING",
                        "enum": ["visual", "connector"],
                        "description": "Use 'visual' for objects and 'connector' for connecting lines.",
                    },
                    "x": {"type": "NUMBER", "description": "The x-coordinate of the top-left corner or start point."},
                    "y": {"type": "NUMBER", "description": "The y-coordinate of the top-left corner or start point."},
                    "width": {"type": "NUMBER", "description": "Width of a visual component. Suggest 80."},
                    "height": {"type": "NUMBER", "description": "Height of a visual component. Suggest 80."},
                    "x2": {"type": "NUMBER", "description": "The x-coordinate of a connector's end point."},
                    "y2": {"type": "NUMBER", "description": "The y-coordinate of a connector's end point."},
                    "label": {"type": "STRING", "description": "A short, user-friendly label for the component."},
                    "description": {
                        "type": "STRING",
                        "description": "A brief, simple, one-sentence explanation of the component.",
                    },
                    "relationships": {
                        "type": "ARRAY",
                        "description": "How this component relates to others.",
                        "items": {
                            "type": "OBJECT",
                            "properties": {
                                "targetId": {"type": "STRING", "description": "The 'id' of the related component."},
                                "description": {
                                    "type": "STRING",
                                    "description": "A short sentence explaining the relationship.",
                                },
                            },
                            "required": ["targetId", "description"],
                        },
                    },
                },
                "required": ["id", "kind", "x", "y", "label", "description"],
            },
        },
    },
    "required": ["components"],
}

COMPONENT_ARTWORK_PROMPT = (
    'Generate a clean, simple, 2D vector icon of a "{label}" for a technical diagram. '
    "It should be in a modern, flat design style with a transparent background."
)

MENTOR_SYSTEM_INSTRUCTION = (
    "You are a helpful and encouraging AI project mentor for students using InnoDraw AI. "
    "Your role is to guide them in turning their 2D visual models into real-world projects. "
    "Break down complex topics, suggest alternative components and designs, provide practical "
    "advice, and help them brainstorm. Your tone is supportive and expert."
)

CONVERSATION_CONTEXT_PROMPT = (
    'The user\'s project idea is: "{idea}". The generated model has these components: {components}. '
    "You are now an expert project mentor. Your goal is to help the user turn this conceptual model "
    "into a real, innovative project. Start the conversation by greeting the user, showing you "
    "understand their project, and then ask how you can help them get started."
)

CONVERSATION_GREETING = (
    'I\'ve analyzed your model for the "{idea}". It looks like a great starting point! '
    "I'm here to help you turn this idea into a real project. What's on your mind? You can ask "
    "about real-world parts, alternative designs, or the first steps to building it."
)

SUGGESTED_PROMPTS = [
    "What real-world parts would I need?",
    "Can you suggest a simpler design?",
    "How could I improve this project?",
    "Explain the most difficult part.",
]
