import json
import time
from pathlib import Path
from typing import Optional, Tuple, Union


def get_project_root():
    """Get the absolute path to the project root directory"""
    return Path(__file__).parent.parent.parent


def export_filename(remote_survey_id: Optional[int], now: Optional[float] = None) -> str:
    """survey_<remote id or "local">_<epoch milliseconds>.json"""
    timestamp = int((now if now is not None else time.time()) * 1000)
    return f"survey_{remote_survey_id if remote_survey_id is not None else 'local'}_{timestamp}.json"


def export_survey(
    survey: dict,
    remote_survey_id: Optional[int],
    export_dir: Union[str, Path],
    now: Optional[float] = None
) -> Tuple[str, str]:
    """Write the survey as 2-space indented JSON and return (filename, content)."""
    content = json.dumps(survey, indent=2, ensure_ascii=False)
    filename = export_filename(remote_survey_id, now)

    output_dir = Path(export_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    (output_dir / filename).write_text(content, encoding="utf-8")
    return filename, content
