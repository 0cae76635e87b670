import logging

import beatgraph.audio.context
import beatgraph.audio.nodes
import beatgraph.buffers


logger = logging.getLogger(__name__)


class MixBus:

	"""
	The shared input every voice connects to.

	The bus splits into a dry path straight to the context's destination and
	a wet path through a convolution reverb that also ends at the destination.
	It applies no gain of its own - each voice sets its own level.
	"""

	def __init__ (self, context: beatgraph.audio.context.AudioContext) -> None:

		"""Build the bus and its reverb inside ``context``."""

		self.context = context

		self.input = context.create_gain()
		self.input.persistent = True

		self.reverb = context.create_convolver()
		self.reverb.persistent = True
		self.reverb.buffer = beatgraph.buffers.REVERB_IMPULSE.get(context.sample_rate)

		self.input.connect(self.reverb)
		self.reverb.connect(context.destination)
		self.input.connect(context.destination)

		logger.debug("Mix bus connected (dry + reverb)")


	def connect_voice (self, node: beatgraph.audio.nodes.AudioNode) -> None:

		"""Connect the last node of a voice chain to the bus."""

		node.connect(self.input)
