"""Citation merging and cited-domain classification.

Use explicit imports:
    from analytics.citations.merger import CitationMerger, CitationItem
    from analytics.citations.domains import DomainClassifier, root_domain
"""
