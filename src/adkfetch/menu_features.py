# src/adkfetch/menu_features.py

from typing import List, Mapping, Optional, Sequence

from pick import pick

from adkfetch.bundle.interfaces import DownloadPlan, FeatureRecord
from adkfetch.bundle.plan import format_size, summarize_plan


def format_feature_option(record: FeatureRecord) -> str:
    dependencies = ", ".join(record.display_dependencies)
    if dependencies:
        return f"{record.display_id}  (depends on: {dependencies})"
    return record.display_id


def select_feature_ids(
    features: Mapping[str, FeatureRecord], previous: Optional[Sequence[str]] = None
) -> List[str]:
    """
    Present a multi-select menu of the bundle's features.

    Dependencies are displayed but not ticked automatically. The previous
    selection, if any, is repeated in the title so the user can pick it again.

    Returns:
        list[str]: Selected feature identifiers without the OptionId. prefix; may be empty.
    """
    records = list(features.values())
    title = (
        "Choose features to download (press SPACE to select, ENTER to confirm):\n"
        "Note: dependencies are listed next to each feature and are not selected automatically."
    )
    if previous:
        title += f"\nPreviously selected: {', '.join(previous)}"

    options = [format_feature_option(record) for record in records]
    selected = pick(options, title, multiselect=True, min_selection_count=0, indicator="*")
    return [records[index].display_id for _, index in selected]


def confirm_plan(plan: DownloadPlan) -> bool:
    """
    Show the per-feature sizes and the total, and ask whether to proceed.

    Returns:
        bool: True if the user confirmed.
    """
    print("These requested features will be downloaded:")
    print(summarize_plan(plan))
    print()
    print(f"This will require a total of {format_size(plan.total_size)} of disk space.")
    answer = input("Proceed? [y/N]: ").strip().lower()
    return answer in ("y", "yes")


def confirm_extract(target_dir: str) -> bool:
    answer = input(f"Extract the installer to {target_dir} now? [Y/n]: ").strip().lower()
    return answer in ("", "y", "yes")
