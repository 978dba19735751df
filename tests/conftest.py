"""Configuração do pytest para o projeto Conecta WhatsApp."""

import sys
from pathlib import Path

# Adiciona src/ e a raiz do projeto ao PYTHONPATH (imports absolutos e tests.fakes)
project_root = Path(__file__).parent.parent
for path in (project_root / "src", project_root):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))
