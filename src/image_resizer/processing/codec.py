"""图片解码、缩放与 JPEG 编码的编解码器封装。"""

from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import Optional, Protocol

from PIL import Image, UnidentifiedImageError

from image_resizer.core.exceptions import DecodeError, EncodeError

LOGGER = logging.getLogger(__name__)

JPEG_MAX_QUALITY = 100

# 文件已打开后 Pillow 可能抛出的解码异常
_DECODE_FAILURES = (UnidentifiedImageError, Image.DecompressionBombError, OSError, SyntaxError, ValueError)


class ImageCodec(Protocol):
    """批处理流程依赖的编解码器接口。

    ``resample`` 为缩放质量提示，None 表示使用实现自身的高质量滤波。
    """

    def decode(self, path: Path) -> Image.Image: ...

    def resize(self, image: Image.Image, width: int, height: int, resample: Optional[int] = None) -> Image.Image: ...

    def encode(self, image: Image.Image, quality: int = JPEG_MAX_QUALITY) -> bytes: ...


class PillowCodec:
    """基于 Pillow 的默认实现，缩放默认使用 LANCZOS 滤波。"""

    resample = Image.LANCZOS

    def decode(self, path: Path) -> Image.Image:
        """加载单张图片。

        打开文件时的文件系统错误（不存在、无权限）原样抛出；
        文件内容无法识别或超过像素上限时抛出 DecodeError。
        返回值为新的 Image 对象，调用者负责关闭。
        """

        with open(path, "rb") as handle:
            try:
                with Image.open(handle) as img:
                    img.load()
                    return img.copy()
            except _DECODE_FAILURES as exc:
                LOGGER.debug("无法识别图像文件 %s: %s", path, exc)
                raise DecodeError(f"无法加载图像: {path}") from exc

    def resize(self, image: Image.Image, width: int, height: int, resample: Optional[int] = None) -> Image.Image:
        # 宽高为 0 时 Pillow 抛出 ValueError，这里不做拦截
        return image.resize((width, height), self.resample if resample is None else resample)

    def encode(self, image: Image.Image, quality: int = JPEG_MAX_QUALITY) -> bytes:
        """编码为 JPEG 字节串。"""

        image_to_save = image if image.mode == "RGB" else _convert_to_rgb(image)
        buffer = io.BytesIO()
        try:
            image_to_save.save(buffer, format="JPEG", quality=quality, subsampling=0)
        except (OSError, ValueError) as exc:
            raise EncodeError(f"JPEG 编码失败: {exc}") from exc
        finally:
            if image_to_save is not image:
                image_to_save.close()
        return buffer.getvalue()


def _convert_to_rgb(img: Image.Image) -> Image.Image:
    """将任意模式图像转换为 RGB。"""

    if img.mode in {"RGBA", "LA"} or (img.mode == "P" and "transparency" in img.info):
        # 保留 Alpha 信息，通过白色背景混合生成 RGB。
        rgba = img.convert("RGBA")
        background = Image.new("RGB", img.size, (255, 255, 255))
        background.paste(rgba, mask=rgba.split()[-1])
        rgba.close()
        return background

    return img.convert("RGB")


DEFAULT_CODEC = PillowCodec()
