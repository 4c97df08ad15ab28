from .chat import (
    MAX_MESSAGE_CHARS,
    UTM,
    SessionContext,
    ChatTurn,
    MessageSender,
    LeadData,
    Product,
    ChatResponse,
    MessageTags,
    ProductIntent,
    BestEffortResult,
    UntaggedMessage,
    TaggingReport,
)
