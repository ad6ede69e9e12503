"""Award valuation engine: pure transformations over cash itineraries and award data.

Modules:
    config              Engine thresholds (beatable ratios, time window, ranking weight)
    cabins              Cabin normalization and display order
    pricing             Lenient price / mileage parsing with currency conversion
    timestamps          Timestamp parsing shared by keys and time buckets
    fingerprint         Slice fingerprints and code-share detection
    valuation           Cash-equivalent value and beatable rules
    mileage_programs    Legacy mileage breakdown grouped per program, route strategies
    award_options       Award option deduplication, grouping, per-cabin views
    enrichment_matcher  Provider record extraction and slice matching
    time_buckets        Near/far split around the cash departure

Pipeline:
    enrichment_matcher → award_options.deduplicate → award_options.group / time_buckets
    → valuation (per candidate, per slice, overall)
"""
