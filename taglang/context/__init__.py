from taglang.context.processing import MESSAGE_CATEGORIES, ProcessingContext

__all__ = ['ProcessingContext', 'MESSAGE_CATEGORIES']
