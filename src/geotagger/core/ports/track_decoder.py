from __future__ import annotations

from typing import List, Protocol

from geotagger.domain.gps_types import Track


class TrackDecoder(Protocol):
    """
    Décodage d'un fichier de trace en une ou plusieurs `Track`
    (une par enregistrement continu, horodatages normalisés en UTC).
    """

    def decode(self, data: bytes, name: str) -> List[Track]: ...
