from .loader import iter_case_files, load_cases
from .models import SuiteCase, SuiteTest
from .runner import SuiteFailure, SuiteReport, run_suite

__all__ = [
    "SuiteCase",
    "SuiteFailure",
    "SuiteReport",
    "SuiteTest",
    "iter_case_files",
    "load_cases",
    "run_suite",
]
