"""
確認對話框 (confirm)

破壞性操作（刪除用例、清空用例）前呼叫。無其他對話框宿主時使用終端機阻塞式提示。
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

logger = logging.getLogger(__name__)

ConfirmDialog = Callable[..., Awaitable[bool]]

_YES = {"y", "yes", "是", "确定", "確定", "ok"}


def _prompt(message: str, title: str) -> bool:
    try:
        answer = input(f"[{title}] {message} (y/N): ")
    except EOFError:
        return False
    return answer.strip().lower() in _YES


async def native_confirm(message: str, title: str = "提示") -> bool:
    """阻塞式提示，在 worker thread 中等待使用者輸入"""
    return await asyncio.to_thread(_prompt, message, title)


def fixed_answer(answer: bool) -> ConfirmDialog:
    """固定回覆的確認器；HTTP 介面由客戶端以 ?confirm=true 表明已確認"""

    async def _confirm(message: str, title: str = "提示") -> bool:
        logger.debug("確認 [%s] %s -> %s", title, message, answer)
        return answer

    return _confirm


async def ask(confirm: Optional[ConfirmDialog], message: str, title: str = "提示") -> bool:
    dialog = confirm or native_confirm
    return bool(await dialog(message, title))
