from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class PlayRecordIn(BaseModel):
    model_config = ConfigDict(extra='forbid')

    title: str = Field(max_length=255)
    source_name: str = Field(max_length=128)
    cover: str = Field(default='', max_length=1024)
    year: str = Field(default='', max_length=16)
    index: int = Field(ge=0, description='Current episode index')
    total_episodes: int = Field(ge=0)
    play_time: int = Field(ge=0, description='Playback position, seconds')
    total_time: int = Field(ge=0)
    save_time: int = Field(ge=0, description='Epoch milliseconds')
    search_title: Optional[str] = Field(default=None, max_length=255)


class PlayRecordOut(PlayRecordIn):
    model_config = ConfigDict(extra='ignore', from_attributes=True)


class FavoriteIn(BaseModel):
    model_config = ConfigDict(extra='forbid')

    title: str = Field(max_length=255)
    source_name: str = Field(max_length=128)
    cover: str = Field(default='', max_length=1024)
    year: str = Field(default='', max_length=16)
    total_episodes: int = Field(ge=0)
    save_time: int = Field(ge=0)
    search_title: Optional[str] = Field(default=None, max_length=255)


class FavoriteOut(FavoriteIn):
    model_config = ConfigDict(extra='ignore', from_attributes=True)


class SearchKeywordIn(BaseModel):
    model_config = ConfigDict(extra='forbid')

    keyword: str = Field(min_length=1, max_length=255)


class SkipConfigIn(BaseModel):
    """Intro/outro markers in seconds."""
    model_config = ConfigDict(extra='forbid')

    enable: bool = False
    intro_time: int = Field(default=0, ge=0)
    outro_time: int = Field(default=0, ge=0)


class SkipConfigOut(SkipConfigIn):
    model_config = ConfigDict(extra='ignore', from_attributes=True)


class PlayRecordSaveIn(BaseModel):
    """Body of POST /api/playrecords; key is "<source>+<id>"."""
    model_config = ConfigDict(extra='forbid')

    key: str = Field(min_length=3, max_length=255, pattern=r'^[^+]+\+[^+]+$')
    record: PlayRecordIn


class FavoriteSaveIn(BaseModel):
    model_config = ConfigDict(extra='forbid')

    key: str = Field(min_length=3, max_length=255, pattern=r'^[^+]+\+[^+]+$')
    favorite: FavoriteIn


class SkipConfigSaveIn(BaseModel):
    model_config = ConfigDict(extra='forbid', populate_by_name=True)

    source: str = Field(min_length=1, max_length=128)
    id_video: str = Field(min_length=1, max_length=128, alias='id')
    config: SkipConfigIn
