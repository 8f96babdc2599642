"""
Statement merging and conflict resolution.

Statements from several documents are grouped by (vulnerability name,
component id). A group with a single statement passes through; larger
groups collapse into one statement whose status is chosen from
STATUS_PRECEDENCE and whose justification keeps every distinct value.
"""

from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .document import Statement, Status, VEXDocument

# Highest precedence first. The most resolved claim wins a conflict.
STATUS_PRECEDENCE: Tuple[Status, ...] = (
    Status.FIXED,
    Status.NOT_AFFECTED,
    Status.UNDER_INVESTIGATION,
    Status.AFFECTED,
)

MULTIPLE_JUSTIFICATIONS_PREFIX = "multiple justifications: "

StatementKey = Tuple[str, str]


def statement_key(statement: Statement) -> StatementKey:
    """Composite (vulnerability name, component id) key of a single-product statement."""
    component_id = statement.products[0].component_id if statement.products else ""
    return (statement.vulnerability.name, component_id)


def split_by_product(statement: Statement) -> List[Statement]:
    """One statement per product; statements with zero or one product are returned as-is."""
    if len(statement.products) <= 1:
        return [statement]
    return [
        statement.model_copy(update={"products": [product]}, deep=True)
        for product in statement.products
    ]


def group_statements(documents: Iterable[VEXDocument]) -> Dict[StatementKey, List[Statement]]:
    groups: Dict[StatementKey, List[Statement]] = {}
    for document in documents:
        for statement in document.statements:
            for single in split_by_product(statement):
                groups.setdefault(statement_key(single), []).append(single)
    return groups


def resolve_status(statements: Sequence[Statement]) -> Status:
    present = {statement.status for statement in statements}
    for status in STATUS_PRECEDENCE:
        if status in present:
            return status
    # Unreachable while STATUS_PRECEDENCE lists every Status member.
    raise ValueError(f"no precedence defined for statuses {sorted(s.value for s in present)}")


def resolve_justification(statements: Sequence[Statement]) -> Optional[str]:
    distinct: List[str] = []
    for statement in statements:
        if statement.justification and statement.justification not in distinct:
            distinct.append(statement.justification)
    if not distinct:
        return None
    if len(distinct) == 1:
        return distinct[0]
    return MULTIPLE_JUSTIFICATIONS_PREFIX + ", ".join(distinct)


def resolve_conflict(statements: Sequence[Statement]) -> Statement:
    """
    Collapse statements sharing a key into one.

    The first statement carrying the winning status provides every field
    other than status and justification.
    """
    if len(statements) == 1:
        return statements[0]

    status = resolve_status(statements)
    base = next(statement for statement in statements if statement.status == status)
    return base.model_copy(
        update={"status": status, "justification": resolve_justification(statements)},
        deep=True,
    )


def merge_statements(documents: Iterable[VEXDocument]) -> List[Statement]:
    """Merged statements of all documents, sorted by composite key."""
    groups = group_statements(documents)
    merged: Dict[StatementKey, Statement] = {
        key: resolve_conflict(group) for key, group in groups.items()
    }
    return [merged[key] for key in sorted(merged)]


def filter_by_products(statements: Iterable[Statement], products: Iterable[str]) -> List[Statement]:
    wanted = set(products)
    return [s for s in statements if any(pid in wanted for pid in s.product_ids())]


def filter_by_vulnerabilities(
    statements: Iterable[Statement], vulnerabilities: Iterable[str]
) -> List[Statement]:
    wanted = set(vulnerabilities)
    return [s for s in statements if s.vulnerability.name in wanted]
