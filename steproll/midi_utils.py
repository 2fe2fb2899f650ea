import logging
import typing

import mido


logger = logging.getLogger(__name__)


def list_output_devices () -> typing.List[str]:

	"""Names of the available MIDI output ports (empty when the backend fails)."""

	try:
		return list(mido.get_output_names())
	except Exception as e:
		logger.error(f"Failed to list MIDI outputs: {e}")
		return []


def select_output_device (device_name: typing.Optional[str] = None) -> typing.Tuple[typing.Optional[str], typing.Optional[typing.Any]]:

	"""
	Select and open a MIDI output port for the instrument.

	If ``device_name`` is given, only that port is opened. Otherwise the
	first available port is used, so the editor can start without asking.
	Nothing is retried: a missing port is logged and reported as
	``(None, None)``.

	Returns:
		A tuple of (device_name, midi_out_object) or (None, None) on failure.
	"""

	outputs = list_output_devices()
	logger.info(f"Available MIDI outputs: {outputs}")

	if not outputs:
		logger.error("No MIDI output devices found.")
		return None, None

	if device_name is None:
		selected = outputs[0]
		if len(outputs) > 1:
			logger.info(f"{len(outputs)} MIDI outputs found - using '{selected}'")

	elif device_name in outputs:
		selected = device_name

	else:
		logger.error(
			f"MIDI output device '{device_name}' not found. "
			f"Available devices: {outputs}"
		)
		return None, None

	try:
		midi_out = mido.open_output(selected)
	except Exception as e:
		logger.error(f"Failed to open MIDI output '{selected}': {e}")
		return None, None

	logger.info(f"Opened MIDI output: {selected}")

	return selected, midi_out
