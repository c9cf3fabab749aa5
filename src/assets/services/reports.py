"""Reported issues and the per-asset report flag."""

import logging
from collections import Counter
from dataclasses import dataclass

from django.core.exceptions import ValidationError
from django.db import DatabaseError

from ..exceptions import PersistenceError
from ..models import Asset, ReportedIssue

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AnnotatedAsset:
    asset: Asset
    has_open_reports: bool
    report_count: int


def count_reports(issues) -> Counter:
    """Group reported issues by the record id they reference."""
    return Counter(str(issue.asset_record_id) for issue in issues)


def annotate_with_report_status(records, issues=None) -> list[AnnotatedAsset]:
    """Attach the report flag and count to each asset, in order.

    Read-only: nothing is written back to the assets. When ``issues``
    is omitted the current ledger is read.
    """
    if issues is None:
        counts = Counter(
            str(record_id)
            for record_id in ReportedIssue.objects.values_list(
                "asset_record_id", flat=True
            )
        )
    else:
        counts = count_reports(issues)

    annotated = []
    for asset in records:
        count = counts.get(str(asset.pk), 0)
        annotated.append(
            AnnotatedAsset(
                asset=asset, has_open_reports=count > 0, report_count=count
            )
        )
    return annotated


def report_issue(
    asset: Asset, condition: str, description: str, reporter, image=None
) -> ReportedIssue:
    """File an issue against an asset."""
    description = (description or "").strip()
    if not condition or not description:
        raise ValidationError(
            "Please provide both the asset condition and a description."
        )

    issue = ReportedIssue(
        asset_record_id=asset.pk,
        asset_code=asset.asset_id,
        asset_name=asset.asset_name,
        condition=condition,
        description=description,
        image=image,
        reported_by=reporter,
        reporter_identity=reporter.identity if reporter else "Unknown User",
    )
    issue.full_clean()
    try:
        issue.save()
    except DatabaseError as exc:
        logger.exception("Failed to file report for asset %s", asset.pk)
        raise PersistenceError(
            f"Could not file report for asset {asset.asset_id}."
        ) from exc

    logger.info(
        "Issue reported for asset %s (%s) by %s",
        asset.asset_id,
        condition,
        issue.reporter_identity,
    )
    return issue
