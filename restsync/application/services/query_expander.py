"""Expands comma/dot relation strings into nested ``with_relation`` calls.

Instead of writing::

    query.with_relation("author", lambda q: q.with_relation("profile"))
    query.with_relation("tags")

you can write::

    QueryExpander.with_all(query, "author.profile,tags")
"""

from collections.abc import Sequence

from restsync.application.interfaces import StoreQuery


class QueryExpander:

    @staticmethod
    def with_one(query: StoreQuery, relations: Sequence[str]) -> StoreQuery:
        """Load one relation path, outer relation first.

        ``with_one(query, ["a", "b"])`` is
        ``query.with_relation("a", lambda q: q.with_relation("b"))``.
        """
        if not relations:
            return query

        head, rest = relations[0], list(relations[1:])
        if rest:
            query.with_relation(head, lambda sub: QueryExpander.with_one(sub, rest))
        else:
            query.with_relation(head)
        return query

    @staticmethod
    def with_all(query: StoreQuery, all_relations: str | Sequence[str] | None) -> StoreQuery:
        """Split on ',' and load every path independently."""
        if not all_relations:
            return query
        if isinstance(all_relations, str):
            all_relations = all_relations.split(",")

        for path in all_relations:
            path = path.strip()
            if not path:
                continue
            QueryExpander.with_one(query, path.split("."))
        return query
