"""领域层模型与协议。

包含：
- models: 补全请求用的 ChatMessage / ChatRequest / ChatResult。
- conversation: 会话消息与 ConversationState。
- retail: 门店后端返回的零售数据结构。
- exceptions: 业务异常类型定义。
- cancellation: 截止时间与取消令牌。
"""
