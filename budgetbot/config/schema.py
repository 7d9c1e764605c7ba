"""
配置数据模型定义 (config/schema.py)
=================================
本模块使用 Pydantic 定义 budgetbot 的完整配置结构。
所有配置项都有默认值，用户只需在 config.json 中覆盖需要修改的部分。

整体配置结构（树形）：
Config (根配置)
├── agents           - Agent 运行参数（模型、温度、迭代上限、工具超时等）
├── provider         - LLM 提供商配置（API Key、API Base URL 等）
├── tools            - 工具参数（搜索结果数、分类数的默认值与上限）
├── recommendations  - 建议服务参数（最少交易数、重新生成间隔、过期天数）
└── storage          - 数据目录

对于 Java 开发者：
- BaseModel 类似于带校验的 POJO/Record
- BaseSettings 类似于 Spring 的 @ConfigurationProperties，额外支持从环境变量读取配置
"""

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings


class AgentDefaults(BaseModel):
    """
    Agent 默认配置。

    - max_iterations: 防止失控循环的安全阀，正常模型 2-5 轮即可完成
    - max_recommendations: 最终保留的建议条数上限
    - tool_timeout: 单个工具调用的超时（秒），0 表示不限制
    """
    model: str = "openai/gpt-4o-mini"  # 默认使用的 LLM 模型（格式: provider/model）
    max_tokens: int = 4096  # 单次 LLM 调用的最大输出 token 数
    temperature: float = 0.3  # 分析类任务偏向确定性输出
    max_iterations: int = Field(default=5, ge=1)  # 单次运行最多请求模型的次数
    max_recommendations: int = Field(default=5, ge=1)
    tool_timeout: float = 30.0
    request_timeout: float = 120.0  # 单次模型请求超时（秒）


class AgentsConfig(BaseModel):
    """Agent 配置容器。"""
    defaults: AgentDefaults = Field(default_factory=AgentDefaults)


class ProviderConfig(BaseModel):
    """LLM 提供商配置（通过 LiteLLM 统一适配，模型名前缀决定路由到哪家服务商）。"""
    api_key: str = ""  # API 密钥（留空时 LiteLLM 会尝试读取服务商的标准环境变量）
    api_base: str | None = None  # 自定义 API 基础 URL（用于私有部署或代理）
    extra_headers: dict[str, str] | None = None  # 额外请求头


class SearchToolConfig(BaseModel):
    """SearchTransactions 工具配置。"""
    default_results: int = 10
    max_results: int = 20  # 工具内部钳制上限，不论模型请求多少


class SpendingToolConfig(BaseModel):
    """GetCategorySpending 工具配置。"""
    default_top_n: int = 10
    max_top_n: int = 20


class ToolsConfig(BaseModel):
    """工具总配置。"""
    search: SearchToolConfig = Field(default_factory=SearchToolConfig)
    spending: SpendingToolConfig = Field(default_factory=SpendingToolConfig)


class RecommendationsConfig(BaseModel):
    """
    建议服务配置。

    - min_transactions: 交易数少于该值时不生成建议（数据不足）
    - regeneration_grace_seconds: 最近一次生成晚于"最新导入时间 - 该值"时跳过生成
    - expiry_days: 新建议的有效期
    - active_limit: 查询有效建议时返回的最大条数
    """
    min_transactions: int = 5
    regeneration_grace_seconds: int = 60
    expiry_days: int = 7
    active_limit: int = 5


class StorageConfig(BaseModel):
    """数据目录配置（transactions.json / recommendations.json）。"""
    data_dir: str = "~/.budgetbot/data"


class Config(BaseSettings):
    """
    budgetbot 根配置类。

    除了从 JSON 文件加载外，还支持从环境变量读取配置：
    - 环境变量前缀: BUDGETBOT_
    - 嵌套分隔符: __ (双下划线)
    - 示例: BUDGETBOT_AGENTS__DEFAULTS__MODEL=anthropic/claude-sonnet-4-5
    """
    agents: AgentsConfig = Field(default_factory=AgentsConfig)
    provider: ProviderConfig = Field(default_factory=ProviderConfig)
    tools: ToolsConfig = Field(default_factory=ToolsConfig)
    recommendations: RecommendationsConfig = Field(default_factory=RecommendationsConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)

    @property
    def data_path(self) -> Path:
        """获取展开后的数据目录绝对路径（将 ~ 展开为用户主目录）。"""
        return Path(self.storage.data_dir).expanduser()

    model_config = ConfigDict(
        env_prefix="BUDGETBOT_",
        env_nested_delimiter="__",
    )
