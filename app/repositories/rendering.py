"""Renders backend-neutral predicate trees into SQLAlchemy WHERE expressions."""
from sqlalchemy import and_, false, not_, or_, true

from app.filters.predicates import Op, PredicateVisitor


class SqlPredicateRenderer(PredicateVisitor):
    """
    Maps logical field names onto columns of ``model``.

    ``relations`` maps a field to ``(relationship attribute, related model)``
    for EXISTS clauses; ``collections`` maps a field to a callable building
    the HAS_ALL condition for one value.
    """

    def __init__(self, model, relations: dict = None, collections: dict = None):
        self.model = model
        self.relations = relations or {}
        self.collections = collections or {}

    def render(self, predicate):
        return predicate.accept(self)

    def column(self, field: str):
        column = getattr(self.model, field, None)
        if column is None:
            raise ValueError(f"Unknown field for {self.model.__name__}: {field}")
        return column

    def visit_all(self, node):
        if not node.parts:
            return true()
        return and_(*(part.accept(self) for part in node.parts))

    def visit_any(self, node):
        if not node.parts:
            return false()
        return or_(*(part.accept(self) for part in node.parts))

    def visit_not(self, node):
        return not_(node.part.accept(self))

    def visit_clause(self, clause):
        op, value = clause.op, clause.value
        if op is Op.EXISTS:
            relationship, related_model = self.relations[clause.field]
            inner = SqlPredicateRenderer(related_model).render(value)
            return relationship.any(inner)
        if op is Op.HAS_ALL:
            condition = self.collections[clause.field]
            return and_(*(condition(item) for item in value)) if value else true()

        column = self.column(clause.field)
        if op is Op.IS_NULL:
            return column.is_(None) if value else column.is_not(None)
        if op is Op.EQ:
            return column.is_(value) if isinstance(value, bool) else column == value
        if op is Op.NE:
            return column != value
        if op is Op.CONTAINS:
            return column.icontains(value, autoescape=True)
        if op is Op.GTE:
            return column >= value
        if op is Op.LTE:
            return column <= value
        if op is Op.GT:
            return column > value
        if op is Op.LT:
            return column < value
        raise ValueError(f"Unsupported operator: {op}")
