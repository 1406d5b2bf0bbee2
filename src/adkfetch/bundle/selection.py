"""
Feature Selector

Turns a raw list of requested option identifiers into a validated
SelectionSet, and exposes the option dependency graph.
"""

from typing import Dict, Iterable, List, Mapping, Optional, Tuple, Union

from adkfetch.exceptions import EmptySelection, UnknownFeature
from adkfetch.log_utils import logger

from .interfaces import (
    FeatureRecord,
    SelectionSet,
    add_option_prefix,
    strip_option_prefix,
)


class FeatureGraph:
    """
    Directed graph of option dependencies, keyed by prefixed option identifier.

    Edges point from an option to the options it depends on.
    """

    def __init__(self, features: Mapping[str, FeatureRecord]):
        self._edges: Dict[str, Tuple[str, ...]] = {
            feature_id: tuple(record.dependency_ids)
            for feature_id, record in features.items()
        }

    def dependencies_of(self, feature_id: str) -> Tuple[str, ...]:
        return self._edges.get(feature_id, ())

    def unknown_dependencies(self) -> List[Tuple[str, str]]:
        """Return (option, dependency) pairs whose dependency is not a known option."""
        return [
            (feature_id, dep)
            for feature_id, deps in self._edges.items()
            for dep in deps
            if dep not in self._edges
        ]

    def find_cycle(self) -> Optional[List[str]]:
        """
        Find one dependency cycle, if any.

        Returns:
            Optional[List[str]]: The option identifiers forming the cycle, first node repeated at the end, or None when the graph is acyclic.
        """
        visiting, done = set(), set()
        for start in self._edges:
            if start in done:
                continue
            path: List[str] = [start]
            stack = [iter(self.dependencies_of(start))]
            visiting.add(start)
            while stack:
                dep = next(stack[-1], None)
                if dep is None:
                    stack.pop()
                    finished = path.pop()
                    visiting.discard(finished)
                    done.add(finished)
                    continue
                if dep in visiting:
                    return path[path.index(dep):] + [dep]
                if dep in done or dep not in self._edges:
                    continue
                visiting.add(dep)
                path.append(dep)
                stack.append(iter(self.dependencies_of(dep)))
        return None

    def closure(self, feature_ids: Iterable[str]) -> List[str]:
        """
        Expand options with everything they transitively depend on.

        Terminates on cyclic graphs. Returns the requested options first, then
        discovered dependencies in breadth-first order.

        Raises:
            UnknownFeature: If a dependency is not a known option.
        """
        result: List[str] = []
        seen = set()
        queue = list(feature_ids)
        while queue:
            feature_id = queue.pop(0)
            if feature_id in seen:
                continue
            if feature_id not in self._edges:
                raise UnknownFeature(
                    f"Feature with name '{strip_option_prefix(feature_id)}' doesn't exist",
                    feature_id=feature_id,
                )
            seen.add(feature_id)
            result.append(feature_id)
            queue.extend(self.dependencies_of(feature_id))
        return result


def parse_feature_list(raw: str) -> List[str]:
    """
    Split a comma-separated feature list into trimmed, non-empty identifiers.

    Parameters:
        raw (str): Text such as ``"DeploymentTools, WindowsPreinstallationEnvironment"``.

    Returns:
        List[str]: Identifiers in the given order, duplicates kept.
    """
    return [item.strip() for item in raw.split(",") if item.strip()]


def select_features(
    features: Mapping[str, FeatureRecord],
    requested: Union[str, Iterable[str]],
    include_dependencies: bool = False,
) -> SelectionSet:
    """
    Validate requested option identifiers and build a SelectionSet.

    Identifiers are accepted with or without the ``OptionId.`` prefix, deduplicated
    and sorted. Dependencies are not added unless `include_dependencies` is set;
    by default picking dependent options is left to the caller.

    Parameters:
        features (Mapping[str, FeatureRecord]): Feature table of the manifest.
        requested (Union[str, Iterable[str]]): Comma-separated string or iterable of identifiers.
        include_dependencies (bool): Add every transitive dependency to the selection.

    Returns:
        SelectionSet: Prefixed, deduplicated, sorted identifiers.

    Raises:
        EmptySelection: If no identifier was requested.
        UnknownFeature: If an identifier is not in the feature table or the option has no packages.
    """
    if isinstance(requested, str):
        requested = parse_feature_list(requested)
    selected = sorted({add_option_prefix(item.strip()) for item in requested if item.strip()})
    if not selected:
        raise EmptySelection()

    if include_dependencies:
        graph = FeatureGraph(features)
        cycle = graph.find_cycle()
        if cycle:
            logger.warning(
                "Feature dependencies form a cycle: "
                + " -> ".join(strip_option_prefix(item) for item in cycle)
            )
        selected = sorted(graph.closure(selected))

    for feature_id in selected:
        record = features.get(feature_id)
        if record is None or not record.package_ids:
            raise UnknownFeature(
                f"Feature with name '{strip_option_prefix(feature_id)}' doesn't exist",
                feature_id=feature_id,
            )

    return SelectionSet(tuple(selected))


def format_feature_listing(features: Mapping[str, FeatureRecord]) -> str:
    """
    Render the feature table as ``<feature>:<dependency>,<dependency>`` lines.

    Identifiers are shown without the ``OptionId.`` prefix, in manifest order.
    """
    return "\n".join(
        f"{record.display_id}:{','.join(record.display_dependencies)}"
        for record in features.values()
    )
