import json, re

from services.errors import MalformedCollaboratorResponse

_GREEDY_OBJECT = re.compile(r"\{[\s\S]*\}")
_decoder = json.JSONDecoder()


def greedy_json_loads(text: str):
    """Parse everything between the first '{' and the last '}'."""
    m = _GREEDY_OBJECT.search(text)
    if not m:
        raise MalformedCollaboratorResponse("No JSON object in output")
    try:
        obj = json.loads(m.group(0))
    except json.JSONDecodeError as e:
        raise MalformedCollaboratorResponse(f"Invalid JSON in output: {e}") from e
    if not isinstance(obj, dict):
        raise MalformedCollaboratorResponse("Output JSON is not an object")
    return obj


def strict_json_loads(text: str):
    """First '{' position that decodes to a complete JSON object."""
    for m in re.finditer(r"\{", text):
        try:
            obj, _ = _decoder.raw_decode(text, m.start())
        except json.JSONDecodeError:
            continue
        if isinstance(obj, dict):
            return obj
    raise MalformedCollaboratorResponse("No valid JSON found in output")


def extract_json(text: str):
    try:
        return greedy_json_loads(text)
    except MalformedCollaboratorResponse:
        return strict_json_loads(text)


def split_csv(value) -> list:
    """Comma-joined form value -> stripped, de-duplicated, order kept."""
    if not value:
        return []
    seen, out = set(), []
    for part in str(value).split(","):
        p = part.strip()
        if p and p.lower() not in seen:
            seen.add(p.lower())
            out.append(p)
    return out
