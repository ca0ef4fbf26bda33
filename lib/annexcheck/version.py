
version = b'0.3'
build = b'[dev]'
commit = b'???'
