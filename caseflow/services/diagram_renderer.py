"""
流程圖渲染（外部 Mermaid 渲染服務，mermaid.ink 相容）

SVG 為向量圖、PNG 為點陣圖。渲染失敗只記錄錯誤並回傳 None，不影響用例資料。
"""

import base64
import logging
from typing import Optional

import requests

from ..config import RendererConfig

logger = logging.getLogger(__name__)


class DiagramRenderer:
    def __init__(self, config: Optional[RendererConfig] = None, session: Optional[requests.Session] = None):
        self.config = config or RendererConfig()
        self.session = session or requests.Session()

    def _encode(self, code: str) -> str:
        return base64.urlsafe_b64encode(code.encode("utf-8")).decode("ascii")

    def _fetch(self, path: str, code: str, params: Optional[dict] = None) -> Optional[bytes]:
        url = f"{self.config.base_url.rstrip('/')}/{path}/{self._encode(code)}"
        try:
            resp = self.session.get(url, params=params, timeout=self.config.timeout)
            resp.raise_for_status()
        except requests.RequestException as e:
            logger.error("Mermaid 渲染失敗 (%s): %s", path, e)
            return None
        if not resp.content:
            logger.error("Mermaid 渲染失敗 (%s): 回應內容為空", path)
            return None
        return resp.content

    def render_svg(self, code: str) -> Optional[bytes]:
        """匯出向量圖"""
        return self._fetch("svg", code)

    def render_png(self, code: str) -> Optional[bytes]:
        """匯出點陣圖"""
        return self._fetch("img", code, params={"type": "png"})
