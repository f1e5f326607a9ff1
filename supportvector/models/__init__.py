from .base_model import BaseModel
from .machine import SupportVectorMachine, fit_support_vector_machine
from .svm import SVMModel

__all__ = ["BaseModel", "SVMModel", "SupportVectorMachine", "fit_support_vector_machine"]
