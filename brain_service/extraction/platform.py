from __future__ import annotations

from brain_service.extraction.types import Platform

# First match wins. "x.com" is anchored so that hosts like dropbox.com don't
# classify as twitter.
PLATFORM_RULES: tuple[tuple[Platform, tuple[str, ...]], ...] = (
    (Platform.ZHIHU, ("zhihu.com",)),
    (Platform.WECHAT, ("mp.weixin.qq.com",)),
    (Platform.XIAOHONGSHU, ("xiaohongshu.com", "xhscdn.com")),
    (Platform.YOUTUBE, ("youtube.com", "youtu.be")),
    (Platform.JUEJIN, ("juejin.cn",)),
    (Platform.DOUBAN, ("douban.com",)),
    (Platform.MEDIUM, ("medium.com",)),
    (Platform.WEIBO, ("weibo.com",)),
    (Platform.TWITTER, ("twitter.com", "//x.com", ".x.com")),
    (Platform.V2EX, ("v2ex.com",)),
)


def classify(url: str) -> Platform:
    """Map a URL to a known platform, or ``Platform.ARTICLE``."""
    lowered = (url or "").lower()
    for platform, needles in PLATFORM_RULES:
        if any(n in lowered for n in needles):
            return platform
    return Platform.ARTICLE
