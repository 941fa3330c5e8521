from .test_case import (
    Branch,
    ExpectedStatus,
    Step,
    TestCase,
    TestGroup,
    decode_cases,
    decode_groups,
    encode_cases,
    encode_groups,
)
from .step_graph import StepGraph, StepReferenceError
from .draft import CaseDraft
