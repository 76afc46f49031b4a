"""Report snapshot model and the Report Store contract.

Use explicit imports:
    from analytics.reports.models import ReportSnapshot, SentimentLabel
    from analytics.reports.store import ReportStore, ProjectProfile, CompetitorWebsite
"""
