"""Run the subscription auto-renewal batch once.

Intended for a daily scheduler when the HTTP cron endpoint is not used.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from app import create_app
from utils.services import renewal_scheduler


def main() -> int:
    app = create_app()
    with app.app_context():
        result = renewal_scheduler().process_subscription_renewals()
    print(json.dumps(result.to_dict()))
    return 1 if result.failed_count else 0


if __name__ == "__main__":
    raise SystemExit(main())
