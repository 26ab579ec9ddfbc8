"""
framing.py — Découpage du flux série en trames TIC.

Deux stratégies exclusives, choisies par configuration (TIC_FRAMING) :
  - stx  : trames délimitées par STX (0x02) et ETX (0x03), cas nominal ;
  - adco : liaisons qui filtrent les caractères de contrôle ; une trame
           commence à chaque étiquette ADCO.

Les deux suivent la même machine à états :

    AWAITING_SYNC → ACCUMULATING → (trame émise | trame rejetée) → ...

Le tampon appartient à l'assembleur et n'est jamais exposé. Les octets
reçus avant la première synchronisation sont jetés sans erreur.
"""

import enum
import logging

from teleinfo2mqtt.errors import EncodingError

log = logging.getLogger(__name__)

STX = 0x02
ETX = 0x03
SYNC_LABEL = b"ADCO"

# Une trame historique fait ~200 octets ; au-delà on a perdu un ETX
MAX_FRAME_SIZE = 4096


class FrameState(enum.Enum):
    AWAITING_SYNC = "awaiting_sync"
    ACCUMULATING = "accumulating"


class FrameAssembler:
    """
    Interface commune : `feed()` reçoit un bloc d'octets de taille
    quelconque (un seul octet suffit) et retourne la liste des textes
    de trame complétés par ce bloc, dans l'ordre de réception.
    """

    def __init__(self):
        self._buffer = bytearray()
        self.state = FrameState.AWAITING_SYNC

    def feed(self, chunk: bytes) -> list[str]:
        raise NotImplementedError

    def reset(self) -> None:
        """Vide le tampon ; la prochaine trame sera resynchronisée."""
        self._buffer.clear()
        self.state = FrameState.AWAITING_SYNC


class DelimitedFrameAssembler(FrameAssembler):
    """Trames STX … ETX : émet le texte strictement entre le premier STX et l'ETX."""

    def __init__(self, max_size: int = MAX_FRAME_SIZE):
        super().__init__()
        self._max_size = max_size

    def feed(self, chunk: bytes) -> list[str]:
        frames: list[str] = []
        pos = 0
        while pos <= len(chunk):
            end = chunk.find(ETX, pos)
            if end < 0:
                self._append(chunk[pos:])
                break
            self._append(chunk[pos:end])
            frame = self._close()
            if frame is not None:
                frames.append(frame)
            pos = end + 1
        return frames

    def _append(self, data: bytes) -> None:
        if not data:
            return

        if self.state is FrameState.AWAITING_SYNC:
            start = data.find(STX)
            if start < 0:
                log.debug("Hors synchro : %d octets ignorés", len(data))
                return
            self.state = FrameState.ACCUMULATING
            data = data[start + 1:]

        self._buffer += data
        if len(self._buffer) > self._max_size:
            log.debug("Trame trop longue (%d octets, ETX perdu ?) — rejetée", len(self._buffer))
            self.reset()

    def _close(self) -> str | None:
        """ETX reçu : retourne la trame si un STX l'a précédé, sinon None."""
        frame = None
        if self.state is FrameState.ACCUMULATING:
            # TIC = ASCII 7 bits : un octet par caractère
            frame = self._buffer.decode("latin-1")
        else:
            log.debug("ETX sans STX — données partielles ignorées")
        self.reset()
        return frame


class LabelSyncFrameAssembler(FrameAssembler):
    """
    Resynchronisation sur l'étiquette ADCO : tout ce qui précède une
    occurrence d'ADCO (hors position 0) forme la trame précédente.
    """

    def __init__(self):
        super().__init__()
        self._scanned = 0   # octets déjà examinés, pour ne pas rescanner le tampon

    def feed(self, chunk: bytes) -> list[str]:
        if not chunk.isascii():
            raise EncodingError(chunk)

        self._buffer += chunk
        frames: list[str] = []

        while True:
            floor = 0 if self.state is FrameState.AWAITING_SYNC else 1
            start = max(self._scanned - len(SYNC_LABEL) + 1, floor)
            pos = self._buffer.find(SYNC_LABEL, start)

            if pos < 0:
                if self.state is FrameState.AWAITING_SYNC:
                    # Garder seulement de quoi reconnaître un ADCO à cheval
                    dropped = len(self._buffer) - (len(SYNC_LABEL) - 1)
                    if dropped > 0:
                        log.debug("Hors synchro : %d octets ignorés", dropped)
                        del self._buffer[:dropped]
                self._scanned = len(self._buffer)
                break

            if self.state is FrameState.AWAITING_SYNC:
                if pos:
                    log.debug("Synchro ADCO : %d octets ignorés", pos)
                self.state = FrameState.ACCUMULATING
            else:
                frames.append(self._buffer[:pos].decode("ascii"))

            del self._buffer[:pos]
            self._scanned = 0

        return frames

    def reset(self) -> None:
        super().reset()
        self._scanned = 0


ASSEMBLERS = {
    "stx":  DelimitedFrameAssembler,
    "adco": LabelSyncFrameAssembler,
}


def make_assembler(framing: str = "stx") -> FrameAssembler:
    """Instancie l'assembleur correspondant à TIC_FRAMING."""
    try:
        factory = ASSEMBLERS[framing]
    except KeyError:
        raise ValueError(
            f"TIC_FRAMING inconnu : {framing!r} (attendu : {', '.join(ASSEMBLERS)})"
        ) from None
    return factory()
