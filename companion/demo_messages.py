from companion.midi_out import VirtualSink
from companion.settings import BridgeConfig, Settings
from companion.translator import Translator


SAMPLE_MESSAGES = [
    ("/virtuoso/remote/connect", (0.0, 0, 0)),
    ("/virtuoso/remote/noteon", (1.0, 1, 60)),
    ("/virtuoso/remote/noteoff", (0.0, 1, 60)),
    ("/virtuoso/remote/parameter", (0.5, 5, 128)),
    ("/virtuoso/remote/parameter", (0.75, 3, 74)),
    ("/virtuoso/remote/volume", (0.25, 2, 99)),
    ("/virtuoso/remote/lights", (1.0, 1, 1)),
    ("/virtuoso/noteon", (1.0, 1, 60)),
    ("/virtuoso/remote/disconnect", (0.0, 0, 0)),
]


def main():
    cfg = BridgeConfig(settings=Settings(max_parameter_message_rate=0, enable_additional_logging=True))
    sink = VirtualSink()
    tr = Translator(cfg, sink)
    for address, args in SAMPLE_MESSAGES:
        tr.handle(address, args)
    print("events:")
    for e in sink.events:
        print(e)
    print("metrics:", tr.get_metrics())


if __name__ == "__main__":
    main()
