ERRORS = {
  "E_MAGIC": "wrong header magic",
  "E_HEADER_SIZE": "egon header size mismatch",
  "E_FILESIZE_ALIGN": "image file size not a multiple of 4096",
  "E_FILESIZE_EMPTY": "image file is supposedly empty",
  "E_READ": "read failed during checksum verification",
  "E_SEEK": "seek past image failed",
}


class EgonIOError(OSError):
    """Hard I/O failure while walking an image. Aborts the current image."""

    def __init__(self, code: str, offset: int, detail: str):
        super().__init__(f"{ERRORS[code]} at offset {offset}: {detail}")
        self.code = code
        self.offset = offset
        self.detail = detail
