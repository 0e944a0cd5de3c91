"""The generate_song tool: schema offered to the model and argument parsing."""

import json
from typing import Any

from pydantic import ValidationError

from ..errors import MalformedToolArguments
from ..llm import ToolCall
from ..models import GenerationRequest

GENERATE_SONG = "generate_song"

GENERATE_SONG_TOOL = {
    "name": GENERATE_SONG,
    "description": (
        "Generate an actual song/music audio file and send it to the user. "
        "Use this when user has confirmed they want to create a song and you "
        "have both lyrics and style."
    ),
    "input_schema": {
        "type": "object",
        "properties": {
            "lyrics": {
                "type": "string",
                "description": "The song lyrics with [verse] and [chorus] tags",
            },
            "style": {
                "type": "string",
                "description": (
                    "Music style description like 'upbeat pop, catchy melody' "
                    "or 'emotional ballad, piano'"
                ),
            },
        },
        "required": ["lyrics", "style"],
    },
}


def first_generation_call(tool_calls: list[ToolCall]) -> ToolCall | None:
    """The first generate_song call, if any. Later ones are ignored."""
    for call in tool_calls:
        if call.name == GENERATE_SONG:
            return call
    return None


def parse_generation_request(arguments: Any) -> GenerationRequest:
    """Validate tool arguments.

    Raises:
        MalformedToolArguments: arguments are not an object with non-empty
            string `lyrics` and `style`.
    """
    if isinstance(arguments, str):
        try:
            arguments = json.loads(arguments)
        except json.JSONDecodeError as e:
            raise MalformedToolArguments(f"Arguments are not JSON: {e}") from e

    if not isinstance(arguments, dict):
        raise MalformedToolArguments("Arguments must be an object")

    try:
        return GenerationRequest.model_validate(arguments)
    except ValidationError as e:
        fields = ", ".join(str(err["loc"][0]) for err in e.errors() if err["loc"])
        raise MalformedToolArguments(f"Invalid generate_song arguments: {fields}") from e
