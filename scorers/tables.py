"""
Table-data scorer: captions, header scope and machine-readable cells.
"""
from __future__ import annotations

from typing import Optional

from models import Category, CategoryScore, IssueKind, ScoringContext, SignalRecord
from scorers.base import BaseScorer, ratio
from config import TABLE_DATA_WEIGHTS


class TableDataScorer(BaseScorer):
    category = Category.TABLE_DATA

    def score(self, record: SignalRecord, context: ScoringContext) -> Optional[CategoryScore]:
        t = record.tables
        if t.table_count <= 0:
            return None

        url = record.url
        captions = ratio(t.tables_with_caption, t.table_count)
        scope = ratio(t.tables_with_scope, t.table_count)
        machine = ratio(t.cells_with_data_attributes, t.total_cells)

        issues = []
        if t.tables_with_scope < t.table_count:
            issues.append(self.low(
                url, IssueKind.TABLE_SEMANTICS,
                "Tables without header scope attributes.",
                'Add scope="col" and scope="row" to table headers.',
                detail=f"{t.table_count - t.tables_with_scope}/{t.table_count} tables",
            ))
        if t.tables_with_caption < t.table_count:
            issues.append(self.low(
                url, IssueKind.TABLE_SEMANTICS,
                "Tables without captions.",
                "Add a <caption> describing each data table.",
                detail=f"{t.table_count - t.tables_with_caption}/{t.table_count} tables",
            ))

        return CategoryScore(
            category=self.category,
            score=(
                captions * TABLE_DATA_WEIGHTS["captions"]
                + scope * TABLE_DATA_WEIGHTS["scope"]
                + machine * TABLE_DATA_WEIGHTS["machine_readable"]
            ),
            subscores={
                "caption_ratio": captions * 100,
                "scope_ratio": scope * 100,
                "machine_readable_ratio": machine * 100,
                "table_count": float(t.table_count),
            },
            issues=tuple(issues),
        )
