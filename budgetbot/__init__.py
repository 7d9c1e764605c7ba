"""
budgetbot - 自主记账分析 Agent

模块概述：
    本文件是 budgetbot 包的入口文件（__init__.py），定义了包的元信息。
    budgetbot 以多轮工具调用（tool calling）的方式分析用户的交易数据，
    最终产出 3-5 条结构化的理财建议。

    核心功能包括：
    - Agent 循环：LLM 推理 → 工具调用 → 结果回填 → 终止判定
    - 工具系统：交易语义搜索、分类消费统计（可按名称扩展）
    - 输出解析：把 LLM 最终回复解析为结构化建议
    - 建议服务：生成前置检查、持久化、过期管理
"""

# 版本号，遵循语义化版本规范（主版本.次版本.修订号）
__version__ = "0.1.0"

# 项目 logo 表情符号，用于 CLI 输出等场景的品牌标识
__logo__ = "💰"
