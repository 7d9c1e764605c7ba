"""
工具基类模块 (agent/tools/base.py)

模块职责：
    定义所有 Agent 工具的抽象基类 Tool。
    每个工具必须实现4个核心接口：name、description、parameters、run。
    基类提供参数校验（validate_params）、OpenAI Function Calling 格式转换（to_schema），
    以及对外的执行入口 execute()：先按 JSON Schema 校验参数，再调用 run()，
    并把所有异常转换为 {"success": false, "error": ...} 载荷。

在架构中的位置：
    Tool 是工具系统的最底层抽象。ToolRegistry 持有 Tool 实例的集合，
    Agent 循环只通过名称解析工具并调用 execute()，从不编写针对某个工具的分支。

设计模式对比（Java 视角）：
    - Tool 相当于 abstract class
    - execute() 是模板方法：校验 → run() → 包装结果/异常
    - run() 是子类实现的核心业务方法

扩展新工具：
    class MyTool(Tool):
        name = "MyTool"
        description = "..."
        parameters = {"type": "object", "properties": {...}, "required": [...]}

        async def run(self, subject_id: str, **kwargs: Any) -> dict[str, Any]:
            ...
"""

from abc import ABC, abstractmethod
from typing import Any

from loguru import logger


class Tool(ABC):
    """
    Agent 工具的抽象基类。

    子类需要提供：
      - name: 工具名称，LLM 通过此名称请求调用，同时也是注册表的键
      - description: 工具功能描述，LLM 据此判断何时调用该工具
      - parameters: JSON Schema 格式的参数定义
      - run(): 实际执行工具逻辑的异步方法

    工具自己是参数的信任边界：例如 "最大结果数" 这类参数必须在 run() 内部钳制，
    不能依赖调用方（LLM）遵守描述中的上限。
    """

    # JSON Schema 类型 -> Python 类型的映射表，用于参数校验
    _TYPE_MAP = {
        "string": str,
        "integer": int,
        "number": (int, float),
        "boolean": bool,
        "array": list,
        "object": dict,
    }

    @property
    @abstractmethod
    def name(self) -> str:
        """工具名称。"""
        pass

    @property
    @abstractmethod
    def description(self) -> str:
        """工具功能描述。"""
        pass

    @property
    @abstractmethod
    def parameters(self) -> dict[str, Any]:
        """工具参数的 JSON Schema 定义。"""
        pass

    @abstractmethod
    async def run(self, subject_id: str, **kwargs: Any) -> dict[str, Any]:
        """
        执行工具的核心逻辑。

        参数:
            subject_id: 数据归属主体（通常是用户 ID），工具只能访问该主体的数据
            **kwargs: 已通过校验的工具参数

        返回:
            dict: 可 JSON 序列化的结果载荷，约定包含 "success" 字段
        """
        pass

    async def execute(self, subject_id: str, arguments: dict[str, Any]) -> dict[str, Any]:
        """
        对外执行入口，不会向调用方抛出异常。

        参数:
            subject_id: 数据归属主体
            arguments: LLM 生成的原始参数

        返回:
            dict: run() 的结果，或 {"success": False, "error": ...}
        """
        if not isinstance(arguments, dict):
            return {"success": False, "error": f"Arguments for {self.name} must be an object"}
        # 传输层无法解码的参数以 {"raw": ...} 形式到达
        if set(arguments) == {"raw"} and "raw" not in self.parameters.get("properties", {}):
            logger.warning(f"{self.name} received undecodable arguments: {str(arguments['raw'])[:200]}")
            return {"success": False, "error": f"Arguments for {self.name} are not valid JSON"}

        errors = self.validate_params(arguments)
        if errors:
            logger.warning(f"{self.name} called with invalid parameters: {errors}")
            return {"success": False, "error": "Invalid parameters: " + "; ".join(errors)}

        try:
            return await self.run(subject_id, **arguments)
        except Exception as e:
            logger.error(f"Error executing {self.name} tool: {e}")
            return {"success": False, "error": str(e) or type(e).__name__}

    def validate_params(self, params: dict[str, Any]) -> list[str]:
        """
        根据 JSON Schema 校验工具参数。

        返回:
            list[str]: 错误信息列表，空列表表示校验通过。
        """
        schema = self.parameters or {}
        if schema.get("type", "object") != "object":
            raise ValueError(f"Schema must be object type, got {schema.get('type')!r}")
        return self._validate(params, {**schema, "type": "object"}, "")

    def _validate(self, val: Any, schema: dict[str, Any], path: str) -> list[str]:
        """递归校验单个值是否符合 JSON Schema，path 用于错误信息定位。"""
        t, label = schema.get("type"), path or "parameter"
        expected = self._TYPE_MAP.get(t)
        # bool 是 int 的子类，integer/number 需要单独排除
        if expected and (not isinstance(val, expected) or (t in ("integer", "number") and isinstance(val, bool))):
            return [f"{label} should be {t}"]

        errors = []
        if "enum" in schema and val not in schema["enum"]:
            errors.append(f"{label} must be one of {schema['enum']}")
        if t in ("integer", "number"):
            if "minimum" in schema and val < schema["minimum"]:
                errors.append(f"{label} must be >= {schema['minimum']}")
            if "maximum" in schema and val > schema["maximum"]:
                errors.append(f"{label} must be <= {schema['maximum']}")
        if t == "string":
            if "minLength" in schema and len(val) < schema["minLength"]:
                errors.append(f"{label} must be at least {schema['minLength']} chars")
            if "maxLength" in schema and len(val) > schema["maxLength"]:
                errors.append(f"{label} must be at most {schema['maxLength']} chars")
        if t == "object":
            props = schema.get("properties", {})
            for k in schema.get("required", []):
                if k not in val:
                    errors.append(f"missing required {path + '.' + k if path else k}")
            for k, v in val.items():
                if k in props:
                    errors.extend(self._validate(v, props[k], path + '.' + k if path else k))
        if t == "array" and "items" in schema:
            for i, item in enumerate(val):
                errors.extend(self._validate(item, schema["items"], f"{path}[{i}]" if path else f"[{i}]"))
        return errors

    def to_schema(self) -> dict[str, Any]:
        """
        将工具转换为 OpenAI Function Calling 格式的描述。

        这是模型能看到的关于工具的全部信息，实现细节永远不会暴露给模型。
        """
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters,
            }
        }


def clamp(value: int | None, default: int, upper: int, lower: int = 1) -> int:
    """把可选的整数参数钳制到 [lower, upper]，None 时取 default。"""
    if value is None:
        value = default
    return min(max(value, lower), upper)
