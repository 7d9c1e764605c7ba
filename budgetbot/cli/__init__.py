"""CLI 模块 - budgetbot 的命令行接口。"""
