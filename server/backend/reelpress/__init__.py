# ReelPress - video compression service with bounded-concurrency FFmpeg jobs

__version__ = "1.0.0"
