from .preparation import MissingPolicy, PreparedData, parse_formula, prepare_data

__all__ = ["MissingPolicy", "PreparedData", "parse_formula", "prepare_data"]
