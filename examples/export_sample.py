import asyncio
import json
from pathlib import Path
import sys

# Ensure the repository root (with the 'ws_ofx' package) is on PYTHONPATH when run from examples/
sys.path.append(str(Path(__file__).resolve().parents[1]))

from ws_ofx.accounts import account_from_node
from ws_ofx.export import group_by_account, render_account


async def export_sample(sample_path: Path, out_dir: Path) -> None:
    sample = json.loads(sample_path.read_text(encoding="utf-8"))
    accounts = [account_from_node(node) for node in sample["accounts"]]

    diagnostics = []
    groups = group_by_account(sample["activities"], [acc.id for acc in accounts])
    for account_id, transactions in groups.items():
        # No API client offline, so EFT activity would be skipped.
        document = await render_account(
            account_id, transactions, accounts, None, diagnostics
        )
        out_path = out_dir / document.filename
        out_path.write_bytes(document.content)
        print(f"Wrote OFX to {out_path}")

    for diagnostic in diagnostics:
        print(f"Skipped: {diagnostic}")


def main():
    examples_dir = Path(__file__).resolve().parent
    asyncio.run(export_sample(examples_dir / "activities.sample.json", examples_dir))


if __name__ == "__main__":
    main()
