import json
import re
from typing import Optional, Tuple, Type, Union

from app.utils.errors import ResponseFormatError

FENCED_BLOCK = re.compile(r"```[a-zA-Z]*\s*(.*?)```", re.DOTALL)

_decoder = json.JSONDecoder()


def extract_json_value(text: str, expect: Optional[Union[Type, Tuple[Type, ...]]] = None):
    """
    Return the first JSON object or array found in free-form model output.

    Fenced code blocks are tried before the raw text. When ``expect`` is given,
    values of other types are skipped. Raises ResponseFormatError when nothing
    usable is found.
    """
    if not isinstance(text, str) or not text.strip():
        raise ResponseFormatError("Model response is empty.")

    candidates = [match.group(1) for match in FENCED_BLOCK.finditer(text)]
    candidates.append(text)

    for candidate in candidates:
        for index, char in enumerate(candidate):
            if char not in "{[":
                continue
            try:
                value, _ = _decoder.raw_decode(candidate, index)
            except json.JSONDecodeError:
                continue
            if expect is None or isinstance(value, expect):
                return value

    kind = "a JSON value" if expect is None else f"a JSON {'array' if expect is list else 'object'}"
    raise ResponseFormatError(f"Model response does not contain {kind}.")
