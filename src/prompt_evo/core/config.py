"""读取 prompt-evo.yaml / Read the prompt-evo.yaml settings file

字符串中的 ${NAME} 会替换为同名环境变量；变量未设置时保留原文，
便于在校验错误里看出是哪一项缺失。
"""

import os
import re
from pathlib import Path
from typing import Any, Optional

import yaml

from prompt_evo.models.config import Config
from prompt_evo.utils.i18n import set_language, t

DEFAULT_CONFIG_NAMES = ("prompt-evo.yaml", "prompt-evo.yml", ".prompt-evo.yaml")

ENV_REFERENCE = re.compile(r"\$\{([^}]+)\}")


def expand_env(value: Any) -> Any:
    """对字符串、字典与列表逐层展开 ${NAME}，其余类型原样返回"""
    if isinstance(value, str):
        return ENV_REFERENCE.sub(lambda m: os.environ.get(m.group(1), m.group(0)), value)
    if isinstance(value, dict):
        return {key: expand_env(item) for key, item in value.items()}
    if isinstance(value, list):
        return [expand_env(item) for item in value]
    return value


def find_config_file(directory: Optional[str] = None) -> Optional[Path]:
    """按 DEFAULT_CONFIG_NAMES 的顺序返回目录下第一个存在的文件"""
    base = Path(directory) if directory else Path.cwd()
    for name in DEFAULT_CONFIG_NAMES:
        candidate = base / name
        if candidate.exists():
            return candidate
    return None


def load_config(config_path: Optional[str] = None) -> Config:
    """
    读取并校验设置文件，同时切换界面语言

    Args:
        config_path: 显式指定的文件；省略时在当前目录按默认文件名查找

    Returns:
        校验后的 Config

    Raises:
        FileNotFoundError: 找不到设置文件
    """
    if config_path is None:
        found = find_config_file()
        if found is None:
            raise FileNotFoundError(t("config_not_found"))
        config_path = str(found)

    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(t("config_file_missing").format(path=config_path))

    raw = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    config = Config(**expand_env(raw))
    set_language(config.language)
    return config
