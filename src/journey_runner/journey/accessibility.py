"""Accessibility audit result filtering.

Raw axe-core results are pruned with the page's ignore table, then
converted to AccessibilityFinding models, optionally flattened to one
finding per offending node.
"""

import logging
import re
from typing import Any, Dict, List, Mapping

from journey_runner.models.journey_models import AxeConfig, AxeIgnore
from journey_runner.models.report_models import AccessibilityFinding, AccessibilityNode

logger = logging.getLogger(__name__)

FIX_PREFIX = re.compile(r"^Fix .* of the following:\s+")


def _node_target(node: Mapping[str, Any]) -> str:
    target = node.get("target") or []
    if isinstance(target, str):
        return target
    return ",".join(str(t) for t in target)


def is_node_ignored(node: Mapping[str, Any], ignore: AxeIgnore) -> bool:
    """Return True if any configured expression matches the node.

    An ignore entry with no expressions ignores nothing.
    """
    checks = (
        (ignore.html, node.get("html") or ""),
        (ignore.summary, node.get("failureSummary") or ""),
        (ignore.target, _node_target(node)),
    )
    return any(
        pattern is not None and re.search(pattern, text) is not None
        for pattern, text in checks
    )


def filter_violations(
    violations: List[Dict[str, Any]], ignore_table: Mapping[str, AxeIgnore]
) -> List[Dict[str, Any]]:
    """Drop ignored nodes, and violations left with no nodes.

    Input violations are not mutated.
    """
    kept = []
    for violation in violations:
        ignore = ignore_table.get(violation.get("id", ""))
        if ignore is None:
            kept.append(violation)
            continue

        nodes = [n for n in violation.get("nodes", []) if not is_node_ignored(n, ignore)]
        if nodes:
            kept.append({**violation, "nodes": nodes})
        else:
            logger.debug(f"Ignoring axe error {violation.get('id')}")
    return kept


def simplify_summary(summary: str) -> str:
    return FIX_PREFIX.sub("", summary or "")


def to_findings(violations: List[Dict[str, Any]], simple: bool) -> List[AccessibilityFinding]:
    """Convert raw violations to findings.

    In simple mode every offending node becomes its own finding with the
    "Fix ... of the following:" preamble stripped from its summary.
    """
    findings = []
    for violation in violations:
        nodes = [
            AccessibilityNode(
                target=_node_target(node),
                html=node.get("html") or "",
                summary=simplify_summary(node.get("failureSummary") or "")
                if simple
                else node.get("failureSummary") or "",
            )
            for node in violation.get("nodes", [])
        ]
        if simple:
            for node in nodes:
                findings.append(
                    AccessibilityFinding(
                        id=violation.get("id", "unknown"),
                        impact=violation.get("impact"),
                        summary=node.summary,
                        nodes=[node],
                    )
                )
        else:
            findings.append(
                AccessibilityFinding(
                    id=violation.get("id", "unknown"),
                    impact=violation.get("impact"),
                    summary=violation.get("help") or violation.get("description") or "",
                    nodes=nodes,
                )
            )
    return findings


def evaluate_audit(results: Mapping[str, Any], axe: AxeConfig) -> List[AccessibilityFinding]:
    """Filter raw axe results with the page's axe config."""
    violations = filter_violations(list(results.get("violations") or []), axe.ignore)
    return to_findings(violations, axe.simple)
