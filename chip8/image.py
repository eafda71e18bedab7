"""Program images for the CHIP-8 virtual machine."""

import abc
from pathlib import Path
from typing import Union
from .data import Address
from .errors import ImageTooBig
from .memory import Memory


class Image(abc.ABC):
    """Something that can populate memory and names where execution starts."""

    @abc.abstractmethod
    def load_into_memory(self, memory: Memory) -> None:
        ...

    @property
    @abc.abstractmethod
    def entry_point(self) -> Address:
        ...


class Ch8Image(Image):
    """Raw ``.ch8`` ROM: big-endian instructions with no header, loaded at 0x200."""

    BASE_ADDRESS = Address(0x200)

    def __init__(self, data: Union[bytes, bytearray]):
        data = bytes(data)
        if len(data) > Address.DOMAIN_SIZE:
            raise ImageTooBig(f"Image is too big: {len(data)} bytes")
        if int(self.BASE_ADDRESS) + len(data) > Address.DOMAIN_SIZE:
            raise ImageTooBig(
                f"Image of {len(data)} bytes does not fit above 0x{int(self.BASE_ADDRESS):03X}"
            )
        self.data = data

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "Ch8Image":
        return cls(Path(path).read_bytes())

    def load_into_memory(self, memory: Memory) -> None:
        memory.load(self.entry_point, self.data)

    @property
    def entry_point(self) -> Address:
        return self.BASE_ADDRESS

    def __len__(self) -> int:
        return len(self.data)
