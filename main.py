#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
geotagger - Géolocalisation de photos Immich par traces GPS
Point d'entrée principal de l'application.

Corrèle l'heure de prise de vue des photos d'un serveur Immich avec des
traces GPX/FIT et écrit la position interpolée sur chaque photo.
"""

import sys
import os


def _ensure_src_on_path() -> None:
    """Permet d'exécuter `python main.py` sans installer le package."""
    repo_root = os.path.dirname(os.path.abspath(__file__))
    src_path = os.path.join(repo_root, "src")
    if src_path not in sys.path:
        sys.path.insert(0, src_path)


def main() -> int:
    """
    Point d'entrée principal de l'application.

    Returns:
        Code de retour de l'application
    """
    _ensure_src_on_path()
    from geotagger.app.bootstrap import run

    return run(sys.argv[1:])


if __name__ == "__main__":
    sys.exit(main())
