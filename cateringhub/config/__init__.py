from cateringhub.config.settings import settings

__all__ = ["settings"]
