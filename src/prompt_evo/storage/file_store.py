"""YAML 快照存储 / YAML snapshot store

CLI 每次调用之间通过本地 YAML 文件保存状态。
"""

import os
from pathlib import Path

import yaml

from prompt_evo.storage.memory import Store


class FileStore(Store):
    """打开时加载快照，flush() 时整体写回"""

    def __init__(self, path: str):
        super().__init__()
        self.path = Path(path)
        if self.path.exists():
            with open(self.path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
            self.restore(data)

    def flush(self) -> Path:
        """先写临时文件再替换，避免写到一半的快照"""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        content = yaml.dump(self.dump(), allow_unicode=True, default_flow_style=False, sort_keys=False)
        tmp_path.write_text(content, encoding="utf-8")
        os.replace(tmp_path, self.path)
        return self.path
