"""Multi-report aggregation.

Folds time-ordered report snapshots into averaged series, breakdowns, ranked
entity lists and period-over-period variation, one facet at a time.

Use explicit imports:
    from analytics.aggregation.facets import Facet, get_descriptor
    from analytics.aggregation.aggregator import PeriodAggregator, FacetAggregate
    from analytics.aggregation.variation import VariationCalculator, ComparisonWindow
    from analytics.aggregation.builders import BUILDERS, FacetContext, AggregationConfig
"""
