# Copyright 2025 Google LLC
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# ==============================================================================

from dataclasses import asdict, dataclass
from typing import Optional

from dacite import Config, from_dict


def _from_row(cls, row: dict):
    # Unknown columns are ignored; numeric columns may come back as int.
    return from_dict(data_class=cls, data=row, config=Config(check_types=False))


@dataclass
class ImageRef:
    """Public URL and storage path of an uploaded photo."""

    url: str
    path: str


@dataclass
class Phrase:
    id: int
    phrase_number: int
    title: str
    text: str
    response: Optional[str] = None

    @classmethod
    def from_row(cls, row: dict) -> "Phrase":
        return _from_row(cls, row)

    def as_dict(self) -> dict:
        return asdict(self)


@dataclass
class Memory:
    """A photo plus text keepsake."""

    id: str
    title: str
    content: str
    date: str  # ISO calendar date, YYYY-MM-DD
    image_url: Optional[str] = None
    image_path: Optional[str] = None
    created_at: Optional[float] = None
    updated_at: Optional[float] = None

    @classmethod
    def from_row(cls, row: dict) -> "Memory":
        return _from_row(cls, row)

    @property
    def image(self) -> Optional[ImageRef]:
        if not self.image_url or not self.image_path:
            return None
        return ImageRef(url=self.image_url, path=self.image_path)

    def as_dict(self) -> dict:
        return asdict(self)


@dataclass
class Reminder:
    """A short note; example rows are seed data and stay read-only."""

    id: str
    content: str
    is_important: bool = False
    important_at: Optional[float] = None
    is_completed: bool = False
    is_example: bool = False
    created_at: Optional[float] = None
    updated_at: Optional[float] = None

    @classmethod
    def from_row(cls, row: dict) -> "Reminder":
        return _from_row(cls, row)

    def as_dict(self) -> dict:
        return asdict(self)


@dataclass
class PreparedImage:
    """JPEG payload ready to upload."""

    payload: bytes
    filename: str
    width: int
    height: int
    content_type: str = "image/jpeg"
