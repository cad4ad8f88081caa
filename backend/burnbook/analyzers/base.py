"""能力接口的主备切换策略

远程提供方优先，任何异常（未配置、网络错误、响应无效）都透明地回退到
本地确定性实现，调用方永远看不到 ProviderUnavailable。
"""
import logging
from typing import Awaitable, Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def run_with_fallback(
    capability: str,
    primary: Callable[[], Awaitable[T]],
    fallback: Callable[[], Awaitable[T]],
) -> T:
    """先调用 primary，失败时调用 fallback"""
    try:
        return await primary()
    except Exception as e:
        logger.warning(f"{capability} 远程提供方不可用({type(e).__name__}: {e})，使用本地实现")
    return await fallback()
