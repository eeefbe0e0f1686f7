# src/circuitsim_core/constants.py
import logging

logger = logging.getLogger(__name__)

# --- Switching elements ---

#: Resistance of a closed switch contact, in ohms.
R_ON_SWITCH: float = 0.05
#: Resistance of an open switch or push-button contact, in ohms.
R_OFF_SWITCH: float = 1.0e9

# --- Semiconductors ---

#: Reverse/off resistance of a diode in the OFF region, in ohms.
R_OFF_DIODE: float = 1.0e9
#: Floor applied to the solved saturation resistance of a transistor, in ohms.
R_MIN_SATURATION: float = 0.1
#: Collector current floor used when deriving the saturation resistance, in amperes.
I_MIN_SATURATION: float = 1.0e-6

# --- LED behavior ---

#: Minimum forward current for an LED to be reported as lit, in amperes.
I_LED_MIN: float = 0.0005
#: Nominal LED current. Above it the LED is overdriven; at or below it damage heals.
I_LED_NOMINAL: float = 0.02
#: Currents below this are numerical noise and never produce brightness.
I_FAKE_THRESHOLD: float = 1.0e-6
#: LED current that accrues one damage tick per solve.
I_LED_DAMAGE: float = 0.06
#: LED current that accrues two damage ticks per solve.
I_LED_BURNOUT: float = 0.12
DAMAGE_TICKS_TO_DAMAGED: int = 10
DAMAGE_TICKS_TO_BURNOUT: int = 30

# --- Passive component limits ---

#: Minimum resistance of each potentiometer segment, in ohms.
R_MIN_POT: float = 0.1
#: Exponent of the logarithmic potentiometer taper.
POT_LOG_TAPER_GAMMA: float = 2.2
#: Resistance standing in for a passive-mode buzzer, in ohms.
R_BUZZER_PASSIVE: float = 1.0e9
#: Fraction of the rated voltage a polarized capacitor tolerates in reverse.
CAPACITOR_REVERSE_RATIO: float = 0.1
#: DC stand-in resistances for an inductor, in ohms.
R_DC_INDUCTOR_OPEN: float = 1.0e9
R_DC_INDUCTOR_SHORT: float = 1.0e-6

# --- Numerical thresholds ---

#: Conductances below this value are not stamped at all, in siemens.
G_NEGLIGIBLE: float = 1.0e-15
#: Branch currents above this value count as "flowing" for loop and animation checks.
I_EPS: float = 1.0e-6
#: Sign threshold for motor direction, in amperes.
I_DIRECTION_EPS: float = 1.0e-9

logger.debug("Defined core simulation constants.")
