from metadump.writer import Writer


class TestWriter(Writer):
    __test__ = False

    def __init__(self):
        self.reset()

    def reset(self):
        self.dump_started = False
        self.dump_ended = False
        self.predata = []
        self.constraints = None
        self.postdata = None

    def begin_dump(self):
        assert not self.dump_started
        assert not self.dump_ended
        self.dump_started = True

    def end_dump(self):
        assert self.dump_started
        assert not self.dump_ended
        self.dump_ended = True

    def write_predata(self, obj, text):
        assert self.dump_started
        assert not self.dump_ended
        assert self.constraints is None
        self.predata.append((obj, text))

    def write_constraints(self, text):
        assert self.dump_started
        assert not self.dump_ended
        assert self.constraints is None
        self.constraints = text

    def write_postdata(self, text):
        assert self.dump_started
        assert not self.dump_ended
        assert self.constraints is not None
        assert self.postdata is None
        self.postdata = text

    @property
    def dumped(self):
        """The predata objects written, in order."""
        return [obj for obj, text in self.predata]
