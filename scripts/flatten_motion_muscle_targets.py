# Run using uv run python -m scripts.flatten_motion_muscle_targets
#
# One-off migration: rewrite nested muscle_targets in the motions table to the
# flat {muscle_id: score} format. Already-flat rows are left alone.

from combo_engine.repositories.motion import JsonMotionRepository
from combo_engine.utils.muscle_tree import flatten_muscle_targets, is_already_flat


def flatten_rows(rows: list[dict]) -> tuple[list[dict], list[str]]:
    """Return the rewritten rows and the ids of motions that changed."""
    out: list[dict] = []
    updated: list[str] = []

    for row in rows:
        targets = row.get("muscle_targets")
        if not targets or is_already_flat(targets):
            out.append(row)
            continue
        out.append({**row, "muscle_targets": flatten_muscle_targets(targets)})
        updated.append(str(row.get("id")))

    return out, updated


def main(repo: JsonMotionRepository | None = None) -> list[str]:
    repo = repo or JsonMotionRepository()

    rows = repo.get_all_rows()
    print(f"Found {len(rows)} motions.")

    new_rows, updated = flatten_rows(rows)
    for motion_id in updated:
        print(f"  Flattened: {motion_id}")

    if updated:
        repo.replace_all_rows(new_rows)
    print(f"Done. Updated {len(updated)} rows.")
    return updated


if __name__ == "__main__":
    try:
        main()
    except Exception as e:
        print("Flattening failed:", e)
        raise
