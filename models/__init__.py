# Models module
from .feed import FeedModel, FeedStatusEnum
from .article import ArticleModel, ArticleTask, ProcessedArticle
from .freshrss import (
    Category,
    Subscription,
    SubscriptionList,
    ItemLink,
    ItemContent,
    StreamItem,
    StreamPage
)

__all__ = [
    "FeedModel",
    "FeedStatusEnum",
    "ArticleModel",
    "ArticleTask",
    "ProcessedArticle",
    "Category",
    "Subscription",
    "SubscriptionList",
    "ItemLink",
    "ItemContent",
    "StreamItem",
    "StreamPage"
]
