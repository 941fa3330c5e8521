"""
JSON 匯出：與持久化格式相同，可直接重新匯入
"""

from typing import List, Sequence

from ...models.test_case import TestCase, TestGroup, decode_cases, decode_groups, encode_cases, encode_groups


class JSONExporter:
    def export_cases(self, cases: Sequence[TestCase]) -> bytes:
        return encode_cases(list(cases)).encode("utf-8")

    def export_groups(self, groups: Sequence[TestGroup]) -> bytes:
        return encode_groups(list(groups)).encode("utf-8")

    def import_cases(self, payload: bytes) -> List[TestCase]:
        return decode_cases(payload)

    def import_groups(self, payload: bytes) -> List[TestGroup]:
        return decode_groups(payload)
