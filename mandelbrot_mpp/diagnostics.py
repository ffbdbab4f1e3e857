"""Verbose logging, TensorFlow noise control and device selection."""

import sys

import tensorflow as tf

_VERBOSE_FLAGS = {"--verbose", "-v"}

VERBOSE = any(arg in _VERBOSE_FLAGS for arg in sys.argv[1:])


def set_verbose(enabled):
    global VERBOSE
    VERBOSE = bool(enabled)


def log(message, *args, **kwargs):
    if VERBOSE:
        print(message, *args, file=sys.stderr, **kwargs)


def error(message):
    print(message, file=sys.stderr)


def quiet_tensorflow():
    """Drop TensorFlow's Python logging to errors unless running verbosely.

    The C++ side is controlled by ``TF_CPP_MIN_LOG_LEVEL``, which has to be
    set before TensorFlow is first imported.
    """

    if VERBOSE:
        return
    tf.get_logger().setLevel("ERROR")
    for handler in tf.get_logger().handlers:
        handler.setLevel("ERROR")


def select_device():
    """Place computation on the first visible GPU, falling back to the CPU."""

    log("TensorFlow version: %s" % tf.__version__)
    gpus = tf.config.list_physical_devices('GPU')
    if not gpus:
        log("No GPU found, using CPU")
        return '/CPU:0'
    try:
        for gpu in gpus:
            tf.config.experimental.set_memory_growth(gpu, True)
    except RuntimeError as e:
        log(e)
        return '/CPU:0'
    log("GPU found, using %s" % gpus[0].name)
    return '/GPU:0'
