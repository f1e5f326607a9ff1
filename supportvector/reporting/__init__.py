"""Presentation of fitted models: tables, percentages and heatmaps."""
