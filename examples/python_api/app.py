from __future__ import annotations

import argparse
from pathlib import Path

from hf_spaces_provisioner.config import apply, load, plan


def _progress(change: object, event: str) -> None:
    address = getattr(change, "address", "unknown")
    if event == "start":
        print(f"[apply:start] {address}")
    else:
        print(f"[apply:done]  {address}")


def main() -> None:
    parser = argparse.ArgumentParser(description="Plan/apply hf-spaces config via Python API")
    parser.add_argument("--config", default="hf-spaces.yaml", help="Path to config file")
    parser.add_argument("--apply", action="store_true", help="Apply the generated plan")
    parser.add_argument(
        "--refresh-keys",
        action="store_true",
        help="Re-read secret and variable keys from the Hub during plan",
    )
    args = parser.parse_args()

    config = load(Path(args.config))

    plan_obj = plan(config, refresh_keys=args.refresh_keys)
    print("Plan summary:", plan_obj.summary())
    for change in plan_obj.changes:
        steps = ", ".join(step.describe() for step in change.steps) or "-"
        print(f"- {change.action.value:6} {change.address}: {steps}")

    if args.apply:
        result = apply(plan_obj, config, progress=_progress)
        print("Apply summary:", result.summary())


if __name__ == "__main__":
    main()
