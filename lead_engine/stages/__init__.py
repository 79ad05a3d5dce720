# Pipeline stages
from .stage1_mapping import classify_and_map, SCHEMA_MAPPERS
from .stage2_enrichment import (
    merge_enrichment,
    run_enrichment,
    NullEnrichmentProvider,
    StaticEnrichmentProvider,
)
from .stage3_scoring import compute_score, score_lead_dual, score_lead, classify_tier
from .stage4_dimensions import compute_dimensions
