from __future__ import annotations

import json
from pathlib import Path
import sys

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from cryptopulse.main import app
DOCS_API_DIR = REPO_ROOT / "docs" / "api"


def main(out_dir: Path = DOCS_API_DIR) -> Path:
    out_dir.mkdir(parents=True, exist_ok=True)
    spec_path = out_dir / "openapi.json"
    spec_path.write_text(
        json.dumps(app.openapi(), ensure_ascii=False, indent=2),
        encoding="utf-8",
    )
    return spec_path


if __name__ == "__main__":
    print(main())
