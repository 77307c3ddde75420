"""
# riffstruct: RIFF containers for humans.

A RIFF file (the format underlying WAV, AVI, WebP and others) is a flat
sequence of tagged, length-prefixed chunks; some chunks ('RIFF' and 'LIST')
contain other chunks, so the file is actually a tree.

Two basic operations are defined on a container:

 1. reading: the chunks are visited lazily, one sibling at a time, without
    scanning the whole file; each chunk only allows to read its own payload.

 2. writing: the chunks are appended to the stream and their length is
    written back when they are closed, so you don't need to know the size
    of the data in advance.

A list has at most one active child at a time (an open chunk or an
enumeration of its children): trying to open another one raises
ListBusyException, so the stream is never accessed from two places.

Reading

    from riffstruct.file import RiffFile

    with RiffFile('sound.wav') as riff:
        for chunk in riff.chunks():
            print(chunk.tag, chunk.length)

Writing

    with RiffFile('new.wav', 'WAVE') as riff:
        with riff.create_chunk('data') as chunk:
            chunk.write(samples)
"""
