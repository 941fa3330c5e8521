"""
caseflow

測試用例步驟圖：編輯、流程圖描述產生與多格式匯出（Excel / XMind / HTML / JSON）。
"""

__version__ = "1.0.0"
