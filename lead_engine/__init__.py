"""
Lead Enrichment & Dual Scoring Engine
=====================================
A four-stage pipeline for CRM lead qualification:
  Stage 1: Classify & Map (Salesforce / HubSpot / Pipedrive / raw → canonical)
  Stage 2: Enrichment (fill-gaps merge from a pluggable async provider)
  Stage 3: Dual Scoring (raw vs enriched, tenant-weighted, tiered)
  Stage 4: Dimensions (Fit / Intent / Timing)
"""

__version__ = "1.0.0"
__author__ = "Lead Scoring Team"
